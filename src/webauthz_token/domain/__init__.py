"""Domain layer for webauthz-token."""
