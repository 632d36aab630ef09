"""Shared exceptions and handlers."""
