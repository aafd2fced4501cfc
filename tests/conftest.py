"""Pytest configuration and shared fixtures."""

import os
import random
from datetime import timezone
from typing import Callable

# Keep component loggers propagating to the root logger during tests
os.environ.setdefault("EXORCIST_LOG_TO_FILE", "0")

import pytest

from financial_exorcist.config import ExorcistConfig, reset_config
from financial_exorcist.core.audit_logger import AuditLogger
from financial_exorcist.core.enums import RitualType, SinCategory
from financial_exorcist.domain.models import Demon, Offering
from financial_exorcist.services.exorcism_service import ExorcismService
from financial_exorcist.store.audit_store import AuditStore
from tests.helpers.clock import NOON, FakeClock


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Fast tests of a single component")
    config.addinivalue_line("markers", "integration: Tests that drive several components together")


def never(offering, history) -> bool:
    return False


def always(offering, history) -> bool:
    return True


@pytest.fixture(autouse=True)
def fresh_config():
    """Make every test read configuration from scratch."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger(AuditStore())


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_offering() -> Callable[..., Offering]:
    """Factory for valid offerings with overridable fields."""

    def _make(**overrides) -> Offering:
        data = {
            "amount": 1000,
            "description": "Groceries",
            "category": SinCategory.GLUTTONY,
            "timestamp": NOON,
        }
        data.update(overrides)
        return Offering(**data)

    return _make


@pytest.fixture
def make_demon() -> Callable[..., Demon]:
    """Factory for demons; defaults to an always-matching two-step mantra."""

    def _make(**overrides) -> Demon:
        data = {
            "name": "Test-Demon",
            "title": "The Demon of Tests",
            "trigger": always,
            "ritual_type": RitualType.MANTRA,
            "ritual_config": {"target_string": "test", "repetitions": 2},
            "punishment_message": "Repeat after me",
        }
        data.update(overrides)
        return Demon(**data)

    return _make


@pytest.fixture
def mantra_demon(make_demon) -> Demon:
    return make_demon(name="Mantra-Demon")


@pytest.fixture
def math_demon(make_demon) -> Demon:
    return make_demon(
        name="Math-Demon",
        ritual_type=RitualType.MATH,
        ritual_config={"difficulty": 1, "problem_count": 2},
    )


@pytest.fixture
def wait_demon(make_demon) -> Demon:
    return make_demon(
        name="Wait-Demon",
        ritual_type=RitualType.WAIT,
        ritual_config={"duration_seconds": 60},
    )


@pytest.fixture
def shame_demon(make_demon) -> Demon:
    return make_demon(
        name="Shame-Demon",
        ritual_type=RitualType.SHAME,
        ritual_config={"message": "Name a book you have not read"},
    )


@pytest.fixture
def service(clock, rng) -> ExorcismService:
    """Service using the real demon registry, judged in UTC."""
    return ExorcismService(rng=rng, clock=clock, tz=timezone.utc, config=ExorcistConfig())
