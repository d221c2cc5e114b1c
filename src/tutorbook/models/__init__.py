"""Data models for API payloads and operation results."""
