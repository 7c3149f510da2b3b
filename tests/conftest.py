from pathlib import Path

import pytest

from netconf_filter.monitoring import get_monitor
from netconf_filter.registry import load_registry

FIXTURES = Path(__file__).resolve().parent / "fixtures"
REGISTRY_PATH = FIXTURES / "registry.json"


@pytest.fixture
def registry():
    return load_registry(REGISTRY_PATH)


@pytest.fixture(autouse=True)
def clean_metrics():
    get_monitor().reset_metrics()
    yield
    get_monitor().reset_metrics()
