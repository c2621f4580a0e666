"""Command-line interface for autotube."""
