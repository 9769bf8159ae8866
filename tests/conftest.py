# tests/conftest.py
import pytest

from mobileauto.config import TimeConfig
from mobileauto import context
from mobileauto.resolver import Resolver
from tests.fakes import FakeSession


@pytest.fixture(autouse=True)
def _reset_state():
    TimeConfig.reset_to_defaults()
    context.reset()
    yield
    TimeConfig.reset_to_defaults()
    context.reset()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def resolver(session, tmp_path):
    return Resolver(session, artifacts_dir=str(tmp_path / "screenshots"))
