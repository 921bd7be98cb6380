"""
Lifecycle Orchestrator.

Drives the host through start -> ready -> quit:

    start(host)             ready(platform_info)
      |                       |
      | register ready        | await StartupGate
      | listener              | bind IPC routes
      | fan out on_start ---->| set temporary menu
      | settle StartupGate    | fan out on_ready

The native ready signal may fire at any point relative to the start phase;
the gate makes the ready handler wait for it either way.
"""
import asyncio
from typing import Any, Dict, List, Optional

from loguru import logger

from .contributions import ContributionRegistry, FanOutReport, LifecyclePhase, fan_out
from .gate import StartupGate, StartupOutcome
from .ipc import IpcChannels, IpcMessageEvent
from .lifecycle import AppState, LifecycleError, LifecycleManager
from .platform import HostPlatform, MenuItem, NativeWindow
from .windows import WindowManager


def temp_menu_template() -> List[MenuItem]:
    """Minimal menu used until the application installs its own."""
    return [MenuItem(role="help", submenu=[MenuItem(role="toggledevtools")])]


class LifecycleOrchestrator:
    """
    Entry points the host platform calls: ``start`` once at launch and
    ``ready`` when the native ready event fires (wired by ``start``).
    """

    def __init__(
        self,
        platform: HostPlatform,
        registry: ContributionRegistry,
        windows: WindowManager,
        notify_ready_after_start_failure: bool = False,
    ):
        self.platform = platform
        self.registry = registry
        self.windows = windows
        self.notify_ready_after_start_failure = notify_ready_after_start_failure

        self.gate = StartupGate()
        self.lifecycle = LifecycleManager()
        self._ready_listener_registered = False
        self._ready_task: Optional[asyncio.Task] = None
        self._quit_task: Optional[asyncio.Task] = None
        self._ipc_bound = False

    @property
    def state(self) -> AppState:
        return self.lifecycle.state

    @property
    def ready_task(self) -> Optional[asyncio.Task]:
        """Task running the ready phase once the native event has fired."""
        return self._ready_task

    async def start(self, host: Any = None) -> StartupOutcome:
        """
        Run the start phase.

        The ready listener is registered before the first await so a ready
        event fired during the start phase is never missed.

        Args:
            host: Handed to every ``on_start`` hook (defaults to the platform)

        Raises:
            LifecycleError: If called more than once
        """
        if self._ready_listener_registered:
            raise LifecycleError("start() may only be called once per orchestrator")
        self.platform.on_ready(self._on_native_ready)
        self._ready_listener_registered = True

        self.lifecycle.transition_to(AppState.STARTING)
        self.gate.signal_start_begin()

        report = await fan_out(
            self.registry.get_hooks(),
            LifecyclePhase.START,
            self.platform if host is None else host,
        )
        outcome = self.gate.complete(report.first_error)

        if self.lifecycle.can_transition(AppState.STARTED):
            self.lifecycle.transition_to(AppState.STARTED)
        return outcome

    async def ready(self, platform_info: Any = None) -> Optional[FanOutReport]:
        """
        Run the ready phase once the start phase has settled.

        IPC routes and the temporary menu are always set up. After a failed
        start phase the ``on_ready`` fan-out is skipped unless
        ``notify_ready_after_start_failure`` is set.
        """
        outcome = await self.gate.wait()
        if not outcome.succeeded:
            logger.warning(f"Start phase failed, continuing ready setup: {outcome.error!r}")

        self.bind_ipc_events()
        self.set_temp_menu()

        report = None
        if outcome.succeeded or self.notify_ready_after_start_failure:
            report = await fan_out(self.registry.get_hooks(), LifecyclePhase.READY, platform_info)
        else:
            logger.warning("Skipping on_ready notifications after failed start phase")

        if self.lifecycle.can_transition(AppState.READY):
            self.lifecycle.transition_to(AppState.READY)
        else:
            logger.warning(f"Ready phase finished in state {self.lifecycle.state.value}")
        return report

    async def quit(self) -> Optional[FanOutReport]:
        """
        Notify contributions of shutdown and flush pending window saves.

        Safe to call more than once; later calls do nothing.
        """
        if self.lifecycle.state in (AppState.STOPPING, AppState.STOPPED):
            logger.debug("quit() called again, ignoring")
            return None
        self.lifecycle.transition_to(AppState.STOPPING)

        report = await fan_out(self.registry.get_hooks(), LifecyclePhase.QUIT)

        flushed = self.windows.flush_pending_saves()
        if flushed:
            logger.info(f"Flushed {flushed} pending window state saves")

        self.lifecycle.transition_to(AppState.STOPPED)
        return report

    def request_quit(self) -> asyncio.Task:
        """Schedule ``quit()`` once. Later calls return the same task."""
        if self._quit_task is None:
            self._quit_task = asyncio.ensure_future(self.quit())
        return self._quit_task

    def create_window(self, url: Optional[str] = None) -> NativeWindow:
        return self.windows.create_window(url)

    def bind_ipc_events(self) -> None:
        if self._ipc_bound:
            return
        ipc = self.platform.ipc
        ipc.on(IpcChannels.CREATE_NEW_WINDOW, self._on_create_new_window)
        ipc.on(IpcChannels.OPEN_EXTERNAL, self._on_open_external)
        self._ipc_bound = True

    def open_externally(self, url: str) -> None:
        self.platform.open_external(url)

    def set_temp_menu(self) -> None:
        """Replace the default menu while the application builds its own."""
        self.platform.set_application_menu(temp_menu_template())

    def _on_native_ready(self, platform_info: Optional[Dict[str, Any]] = None) -> asyncio.Task:
        if self._ready_task is not None:
            logger.warning("Native ready fired twice, ignoring")
            return self._ready_task
        self._ready_task = asyncio.ensure_future(self.ready(platform_info))
        self._ready_task.add_done_callback(_log_ready_error)
        return self._ready_task

    def _on_create_new_window(self, event: IpcMessageEvent, url: Optional[str] = None) -> None:
        self.create_window(url)

    def _on_open_external(self, event: IpcMessageEvent, url: Optional[str] = None) -> None:
        if url:
            self.open_externally(url)


def _log_ready_error(task: asyncio.Future) -> None:
    # Nothing awaits the ready task; surface its failure here
    if task.cancelled():
        logger.warning("Ready phase cancelled")
    elif task.exception() is not None:
        logger.opt(exception=task.exception()).error(f"Ready phase failed: {task.exception()}")
