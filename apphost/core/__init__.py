"""
apphost Core - Host Infrastructure.

Provides the lifecycle and window-state engine of a desktop application host:
- LifecycleOrchestrator: start -> ready -> quit, driven by the platform
- StartupGate: joins the start phase with the native ready signal
- ContributionRegistry: pluggable lifecycle participants
- WindowPlacementPolicy / WindowStateStore: window geometry across restarts
- ServiceLocator / BaseSystem / ConfigManager: service and config plumbing

Usage:
    from apphost.core import ApplicationBuilder

    orchestrator = await ApplicationBuilder("My App").build(platform)
    await orchestrator.start(platform)
"""
from .base_system import BaseSystem
from .locator import ServiceLocator, sl
from .config import (
    ConfigManager,
    AppConfig,
    GeneralSettings,
    WindowSettings,
    LifecycleSettings,
)
from .events import Signal
from .lifecycle import LifecycleManager, AppState, LifecycleError
from .gate import StartupGate, StartupGateError, StartupOutcome
from .contributions import (
    ContributionRegistry,
    ContributionHooks,
    LifecyclePhase,
    FanOutReport,
    HookFailure,
    fan_out,
)
from .ipc import IpcChannels, IpcMessageEvent, IpcRouter
from .platform import HostPlatform, NativeWindow, NativeEvent, MenuItem, Rect, WindowEvents
from .window_state import WindowState, WindowStateStore, WindowStateBinding, WINDOW_STATE_KEY
from .placement import WindowOptions, WindowPlacementPolicy, compute_default_state, nearest_display
from .windows import WindowManager
from .orchestrator import LifecycleOrchestrator, temp_menu_template
from .bootstrap import ApplicationBuilder, InitialWindowContribution, run_app

__all__ = [
    # Core infrastructure
    "BaseSystem",
    "ServiceLocator",
    "sl",

    # Configuration
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "WindowSettings",
    "LifecycleSettings",

    # Events
    "Signal",

    # Lifecycle
    "LifecycleManager",
    "AppState",
    "LifecycleError",
    "StartupGate",
    "StartupGateError",
    "StartupOutcome",
    "LifecycleOrchestrator",
    "temp_menu_template",

    # Contributions
    "ContributionRegistry",
    "ContributionHooks",
    "LifecyclePhase",
    "FanOutReport",
    "HookFailure",
    "fan_out",

    # Platform / IPC
    "HostPlatform",
    "NativeWindow",
    "NativeEvent",
    "MenuItem",
    "Rect",
    "WindowEvents",
    "IpcChannels",
    "IpcMessageEvent",
    "IpcRouter",

    # Windows
    "WindowState",
    "WindowStateStore",
    "WindowStateBinding",
    "WINDOW_STATE_KEY",
    "WindowOptions",
    "WindowPlacementPolicy",
    "compute_default_state",
    "nearest_display",
    "WindowManager",

    # Bootstrap
    "ApplicationBuilder",
    "InitialWindowContribution",
    "run_app",
]
