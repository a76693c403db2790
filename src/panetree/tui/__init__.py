"""Textual interface for the live view."""
