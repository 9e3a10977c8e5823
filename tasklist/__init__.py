"""Multi-user todo list: backend API, web front and session bridge."""

__version__ = "1.0.0"
