"""Command modules for the taskvault CLI."""
