"""Command-line interface for session-import."""
