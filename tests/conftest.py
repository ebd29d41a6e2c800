"""Shared fixtures for the test suite."""
from __future__ import annotations

import os
import time
from typing import Iterator

import pytest


@pytest.fixture(autouse=True)
def utc_timezone() -> Iterator[None]:
    """Render all local times in UTC so expected strings are stable."""
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()
