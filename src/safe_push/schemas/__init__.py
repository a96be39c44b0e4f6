"""Packaged JSON schemas for safe-push."""
