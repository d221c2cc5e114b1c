"""
Tutorbook: Python client for the tutoring booking platform API.
"""

__version__ = "0.1.0"
