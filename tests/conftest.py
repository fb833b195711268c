"""Pytest configuration and Hypothesis profiles."""

import pytest
from hypothesis import settings

from hookstack.core.resolver import Resolver
from hookstack.core.store import InterceptorStore, ResolutionCache

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")


@pytest.fixture
def resolver() -> Resolver:
    """A Resolver wired to an empty store and cache."""
    cache = ResolutionCache()
    return Resolver(InterceptorStore(cache), cache)
