"""Command-line interface for filegate."""
