"""Persistence for token records."""
