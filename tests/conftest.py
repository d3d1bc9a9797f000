import pytest

from fakes import build_harness, make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def harness(settings):
    return build_harness(settings=settings)
