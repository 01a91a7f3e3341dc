"""
Factory for creating identifier generation strategies.
Uses caching to avoid creating multiple instances.
"""

from enum import Enum

from share_app.services.id_strategies import (
    IdentifierStrategy,
    RandomAlphanumericStrategy,
    ContentIdStrategy,
)
from share_app.config import settings


class IdentifierKind(Enum):
    """What the identifier is for"""
    SHORT_CODE = "short_code"
    CONTENT_ID = "content_id"


class IdentifierFactory:
    """Factory for identifier strategies with caching"""

    _instances = {}  # Cache for strategy instances

    @classmethod
    def create_strategy(cls, kind: IdentifierKind) -> IdentifierStrategy:
        """
        Create or return cached identifier strategy.

        Args:
            kind: Which identifier family to generate

        Returns:
            A cached instance of an IdentifierStrategy

        Raises:
            ValueError: If kind is unknown
        """
        if kind in cls._instances:
            return cls._instances[kind]

        if kind == IdentifierKind.SHORT_CODE:
            instance = RandomAlphanumericStrategy(
                length=settings.short_code_length,
                max_retries=settings.max_retries
            )
        elif kind == IdentifierKind.CONTENT_ID:
            instance = ContentIdStrategy(length=settings.content_id_length)
        else:
            raise ValueError(f"Unknown identifier kind: {kind}")

        cls._instances[kind] = instance
        return instance
