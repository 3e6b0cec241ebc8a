"""SQLAlchemy models for webauthz-token tables.

All models inherit from the Base class defined in database.py.
"""

from webauthz_token.infrastructure.persistence.models.token import TokenModel

__all__ = ["TokenModel"]
