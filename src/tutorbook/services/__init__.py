"""Client-side workflows built on the API resources."""
