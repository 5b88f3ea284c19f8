# tests/conftest.py
import pytest

from event_framework.core import loop

@pytest.fixture(autouse=True)
def no_global_loop():
    # every test starts without a main worker installed
    loop.reset()
    yield
    loop.reset()
