"""CLI module for prismgl."""
