"""Command-line interface for Lily."""
