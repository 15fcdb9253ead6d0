"""Command-line interface for Styliner."""
