"""CLI command modules for phantom-bridge."""
