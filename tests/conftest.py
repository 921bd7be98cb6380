import os
from unittest.mock import MagicMock

import pytest

# Qt tests run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from apphost.core.contributions import ContributionRegistry
from apphost.core.locator import sl
from apphost.core.orchestrator import LifecycleOrchestrator
from apphost.core.placement import WindowPlacementPolicy
from apphost.core.window_state import WindowStateStore
from apphost.core.windows import WindowManager

from fakes import FakePlatform, ManualScheduler


@pytest.fixture(autouse=True)
def reset_locator():
    """ServiceLocator is a process-wide singleton."""
    sl.reset()
    yield
    sl.reset()


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store(tmp_path):
    return WindowStateStore(MagicMock(), MagicMock(), path=tmp_path / "window_state.json")


@pytest.fixture
def policy(store):
    return WindowPlacementPolicy(store, title="Test Host")


@pytest.fixture
def window_manager(platform, store, policy, scheduler):
    return WindowManager(platform, store, policy, debounce_ms=1000, scheduler=scheduler)


@pytest.fixture
def registry():
    return ContributionRegistry()


@pytest.fixture
def orchestrator(platform, registry, window_manager):
    return LifecycleOrchestrator(platform, registry, window_manager)


@pytest.fixture
def caplog(caplog):
    """Route loguru records into pytest's caplog."""
    from loguru import logger

    handler_id = logger.add(caplog.handler, format="{message}", level=0)
    yield caplog
    logger.remove(handler_id)
