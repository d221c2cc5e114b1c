"""Configuration, logging, dates and file helpers."""
