"""Core configuration, errors and locking primitives."""
