"""Input validation for lessons, templates, broadcasts and forms."""
