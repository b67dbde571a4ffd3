"""Command-line interface for twinklyrt."""
