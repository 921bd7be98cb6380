"""
Bootstrap helpers for apphost applications.

Wires config, logging, the window state store, contributions and the
lifecycle orchestrator onto a Qt event loop driven by qasync.
"""
import sys
import asyncio
from typing import Any, List, Optional

from loguru import logger

from .locator import sl
from .contributions import ContributionRegistry
from .orchestrator import LifecycleOrchestrator
from .placement import WindowPlacementPolicy
from .platform import HostPlatform
from .windows import WindowManager
from .window_state import WindowStateStore


class InitialWindowContribution:
    """Opens the first window once the host is ready."""

    name = "initial-window"

    def __init__(self, orchestrator: LifecycleOrchestrator, url: Optional[str] = None):
        self.orchestrator = orchestrator
        self.url = url

    def on_ready(self, platform_info: Any) -> None:
        self.orchestrator.create_window(self.url)


class ApplicationBuilder:
    """
    Fluent builder for apphost applications.

    Example:
        orchestrator = await (ApplicationBuilder("My App", "config.json")
                              .with_logging()
                              .add_contribution(MyContribution())
                              .with_initial_window("main.qml")
                              .build(platform))
    """

    def __init__(self, name: str = "App Host", config_path: str = "config.json"):
        """
        Initialize application builder.

        Args:
            name: Application name, used as the window title
            config_path: Path to config.json file
        """
        self.name = name
        self.config_path = config_path
        self._contributions: List[Any] = []
        self._use_entry_points = True
        self._logging_configured = False
        self._open_initial_window = False
        self._initial_url: Optional[str] = None

    def add_contribution(self, contribution: Any):
        """
        Register a lifecycle contribution (invoked in registration order).

        Returns:
            Self for chaining
        """
        self._contributions.append(contribution)
        return self

    def with_entry_points(self, enable: bool = True):
        """Also load contributions from the ``apphost.contributions`` entry point group."""
        self._use_entry_points = enable
        return self

    def with_logging(self, enable: bool = True):
        """
        Configure logging setup.

        Returns:
            Self for chaining
        """
        self._logging_configured = enable
        return self

    def with_initial_window(self, url: Optional[str] = None, enable: bool = True):
        """Open a window (optionally loading ``url``) when the host becomes ready."""
        self._open_initial_window = enable
        self._initial_url = url
        return self

    async def build(self, platform: HostPlatform) -> LifecycleOrchestrator:
        """
        Initialize systems and assemble the orchestrator.

        Returns:
            Orchestrator ready for ``start()``
        """
        # 1. Service locator + config
        sl.init(self.config_path)
        config = sl.config.data

        # 2. Setup logging
        if self._logging_configured:
            from .logging import setup_logging
            setup_logging(config.general.debug_mode, config.general.log_dir, self.name)
            logger.info(f"Starting {self.name}")

        # 3. Systems
        store = sl.register_system(WindowStateStore)
        await sl.start_all()

        # 4. Contributions
        registry = ContributionRegistry()
        for contribution in self._contributions:
            registry.register(contribution)
        if self._use_entry_points:
            registry.load_entry_points()

        # 5. Windows + orchestrator
        policy = WindowPlacementPolicy(
            store,
            title=self.name,
            slot_key=config.window.slot_key,
            min_width=config.window.min_width,
            min_height=config.window.min_height,
        )
        windows = WindowManager(platform, store, policy, debounce_ms=config.window.save_debounce_ms)
        orchestrator = LifecycleOrchestrator(
            platform,
            registry,
            windows,
            notify_ready_after_start_failure=config.lifecycle.notify_ready_after_start_failure,
        )

        if self._open_initial_window:
            registry.register(InitialWindowContribution(orchestrator, self._initial_url))

        return orchestrator


def run_app(
    builder: Optional[ApplicationBuilder] = None,
    app_name: str = "App Host",
    config_path: str = "config.json",
) -> int:
    """
    Run a complete apphost application.

    Handles:
    - Qt application setup
    - Event loop configuration
    - Start phase, ready phase and window creation
    - Graceful shutdown (on_quit hooks, pending window saves, systems)

    Args:
        builder: Optional pre-configured ApplicationBuilder
        app_name: Application name (used if builder not provided)
        config_path: Config path (used if builder not provided)

    Returns:
        Process exit code
    """
    from PySide6.QtWidgets import QApplication
    from qasync import QEventLoop
    from ..ui.qt_host import QtHostPlatform

    if builder is None:
        builder = ApplicationBuilder(app_name, config_path).with_logging().with_initial_window()

    async def async_main(platform):
        """Async application entry point."""
        orchestrator = await builder.build(platform)
        outcome = await orchestrator.start(platform)
        if outcome.succeeded:
            logger.info(f"{builder.name} started successfully")
        return orchestrator

    try:
        app = QApplication(sys.argv)
        app.setApplicationName(builder.name)
        loop = QEventLoop(app)
        asyncio.set_event_loop(loop)
        platform = QtHostPlatform(app)

        with loop:
            orchestrator = loop.run_until_complete(async_main(platform))

            platform.on_about_to_quit(orchestrator.request_quit)
            loop.run_forever()

            # Graceful shutdown
            loop.run_until_complete(orchestrator.request_quit())
            loop.run_until_complete(sl.stop_all())

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except RuntimeError as e:
        if "Event loop stopped" not in str(e):
            raise
    return 0
