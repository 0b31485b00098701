"""Shared fixtures."""

import pytest

from support import MemoryStore, site_archive


@pytest.fixture
def store():
    return MemoryStore({
        "1.0.0": site_archive("1.0.0"),
        "2.0.0": site_archive("2.0.0"),
        "2.0.0-ui+ui.3": site_archive("2.0.0-ui+ui.3"),
    })
