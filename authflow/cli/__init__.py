"""Command line interface for AuthFlow."""
