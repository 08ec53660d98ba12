"""Seat Unit / Bundle generator service."""
