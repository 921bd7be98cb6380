"""
apphost - Desktop Application Host

Lifecycle orchestration and window-state persistence for async Python
desktop applications built on PySide6 and qasync.
"""

from apphost.core import (
    ApplicationBuilder,
    ConfigManager,
    ContributionRegistry,
    LifecycleOrchestrator,
    StartupGate,
    WindowStateStore,
    run_app,
    sl,
)
from apphost.core.logging import setup_logging

__version__ = "0.1.0"

__all__ = [
    "ApplicationBuilder",
    "ConfigManager",
    "ContributionRegistry",
    "LifecycleOrchestrator",
    "StartupGate",
    "WindowStateStore",
    "run_app",
    "setup_logging",
    "sl",
]
