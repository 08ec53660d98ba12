"""Shared constants, errors and request guards."""
