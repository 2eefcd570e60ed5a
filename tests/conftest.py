import pytest

from convertible import config


@pytest.fixture(autouse=True)
def clean_config():
    """Keep global key/value registrations from leaking between tests."""
    config.reset()
    yield
    config.reset()
