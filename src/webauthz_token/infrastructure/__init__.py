"""Infrastructure layer: cryptography and persistence for webauthz-token."""
