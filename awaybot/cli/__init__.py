"""CLI module for awaybot."""
