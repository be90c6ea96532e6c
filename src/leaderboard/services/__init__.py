"""Backends for the ordered score index."""
