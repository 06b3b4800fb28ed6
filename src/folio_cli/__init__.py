"""Folio command-line interface."""
