"""
Tests for identifier generation strategies.
"""

import asyncio

import pytest

from share_app.errors import StorageFailureError
from share_app.services.id_factory import IdentifierFactory, IdentifierKind
from share_app.services.id_strategies import (
    ContentIdStrategy,
    RandomAlphanumericStrategy,
)


class TestRandomAlphanumericStrategy:
    """Test short code strategy"""

    def test_generates_correct_length(self):
        strategy = RandomAlphanumericStrategy(length=6)

        code = strategy.generate()

        assert len(code) == 6
        assert code.isalnum()

    def test_redraws_until_claim_succeeds(self):
        """Collisions are retried with a fresh draw"""
        strategy = RandomAlphanumericStrategy(length=6, max_retries=5)
        attempts = []

        async def claim(candidate):
            attempts.append(candidate)
            return len(attempts) == 3

        code = asyncio.run(strategy.generate_unique(claim))

        assert code == attempts[-1]
        assert len(attempts) == 3

    def test_gives_up_after_max_retries(self):
        strategy = RandomAlphanumericStrategy(length=6, max_retries=4)
        attempts = []

        async def claim(candidate):
            attempts.append(candidate)
            return False

        with pytest.raises(StorageFailureError):
            asyncio.run(strategy.generate_unique(claim))
        assert len(attempts) == 4


class TestContentIdStrategy:
    """Test long content id strategy"""

    def test_generates_correct_length(self):
        strategy = ContentIdStrategy(length=16)

        assert len(strategy.generate()) == 16

    def test_does_not_consult_the_store(self):
        """Enough entropy that the id is used as drawn"""
        strategy = ContentIdStrategy(length=16)

        async def claim(candidate):
            raise AssertionError("content ids are not collision-checked")

        assert len(asyncio.run(strategy.generate_unique(claim))) == 16

    def test_ids_are_distinct(self):
        strategy = ContentIdStrategy(length=16)

        ids = {strategy.generate() for _ in range(200)}

        assert len(ids) == 200


class TestIdentifierFactory:
    """Test strategy factory"""

    def test_creates_short_code_strategy(self):
        strategy = IdentifierFactory.create_strategy(IdentifierKind.SHORT_CODE)
        assert isinstance(strategy, RandomAlphanumericStrategy)

    def test_creates_content_id_strategy(self):
        strategy = IdentifierFactory.create_strategy(IdentifierKind.CONTENT_ID)
        assert isinstance(strategy, ContentIdStrategy)

    def test_returns_cached_instance(self):
        first = IdentifierFactory.create_strategy(IdentifierKind.SHORT_CODE)
        second = IdentifierFactory.create_strategy(IdentifierKind.SHORT_CODE)
        assert first is second
