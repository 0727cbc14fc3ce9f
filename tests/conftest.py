"""Shared fixtures for the test suite."""
import pytest
from config import reset_config


class FakeResource:
    """Records its close into a shared log and optionally fails."""

    def __init__(self, name, log, error=None):
        self.name = name
        self.log = log
        self.error = error
        self.close_count = 0

    def close(self):
        self.close_count += 1
        self.log.append(self.name)
        if self.error is not None:
            raise self.error

    def __repr__(self):
        return f"FakeResource({self.name!r})"


@pytest.fixture(autouse=True)
def fresh_config():
    """Each test starts from the default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def release_log():
    return []


@pytest.fixture
def make_resource(release_log):
    def factory(name, error=None):
        return FakeResource(name, release_log, error)
    return factory
