"""Core modules for panelwatch."""
