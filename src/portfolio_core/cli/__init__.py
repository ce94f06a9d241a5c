"""Command-line interface for portfolio-core."""
