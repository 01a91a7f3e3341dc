"""
Identifier generation strategies.
Uses Strategy Pattern so links and content items can draw ids differently.
"""

import secrets
import string
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from share_app.errors import StorageFailureError


class IdentifierStrategy(ABC):
    """Abstract base class for identifier generation strategies"""

    @abstractmethod
    def generate(self) -> str:
        """Draw one candidate identifier"""
        pass

    async def generate_unique(self, claim: Callable[[str], Awaitable[bool]]) -> str:
        """
        Draw identifiers until ``claim`` accepts one.

        Args:
            claim: Async callable that tries to reserve a candidate and
                   returns False if it is already taken

        Returns:
            The claimed identifier
        """
        return self.generate()


class RandomAlphanumericStrategy(IdentifierStrategy):
    """
    Fixed-length random string over [A-Za-z0-9].

    Short (link codes): small space, so every draw is claimed against the
    store and redrawn on collision.

    Pros: Simple, unpredictable, no coordination needed
    Cons: Collision probability grows with the namespace
    """

    ALPHABET = string.ascii_letters + string.digits

    def __init__(self, length: int = 6, max_retries: int = 10):
        self.length = length
        self.max_retries = max_retries

    def generate(self) -> str:
        return "".join(secrets.choice(self.ALPHABET) for _ in range(self.length))

    async def generate_unique(self, claim: Callable[[str], Awaitable[bool]]) -> str:
        for _ in range(self.max_retries):
            candidate = self.generate()
            if await claim(candidate):
                return candidate

        raise StorageFailureError(
            f"Could not generate unique identifier after {self.max_retries} attempts"
        )


class ContentIdStrategy(IdentifierStrategy):
    """
    Long random id for files and texts.

    62^16 (~4.7e28) possible ids: collisions are treated as impossible, so the
    candidate is used as drawn without a store round-trip.
    """

    def __init__(self, length: int = 16):
        self.length = length

    def generate(self) -> str:
        alphabet = RandomAlphanumericStrategy.ALPHABET
        return "".join(secrets.choice(alphabet) for _ in range(self.length))
