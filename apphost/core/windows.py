"""
Window creation and per-window event binding.
"""
from typing import Dict, List, Optional

from loguru import logger

from .ipc import IpcChannels
from .placement import WindowPlacementPolicy
from .platform import HostPlatform, NativeEvent, NativeWindow, WindowEvents
from .window_state import Scheduler, WindowStateBinding, WindowStateStore


class WindowManager:
    """
    Creates top-level windows and keeps track of the live ones.

    Every window is built hidden and revealed on ``ready-to-show``, so the
    user never sees a blank frame.
    """

    def __init__(
        self,
        platform: HostPlatform,
        store: WindowStateStore,
        policy: WindowPlacementPolicy,
        debounce_ms: int = 1000,
        scheduler: Optional[Scheduler] = None,
    ):
        self.platform = platform
        self.store = store
        self.policy = policy
        self.debounce_ms = debounce_ms
        self._scheduler = scheduler
        self._bindings: Dict[int, WindowStateBinding] = {}
        self._windows: List[NativeWindow] = []

    @property
    def windows(self) -> List[NativeWindow]:
        return list(self._windows)

    def create_window(self, url: Optional[str] = None) -> NativeWindow:
        options = self.policy.resolve(self.platform.screen, url).model_copy(update={"show": False})

        window = self.platform.create_window(options)
        if options.is_maximized:
            window.maximize()
        window.on(WindowEvents.READY_TO_SHOW, lambda *args: window.show())

        # Links that would open another native window go to the default browser
        def on_new_window(event: NativeEvent, target_url: str, *args):
            event.prevent_default()
            self.platform.open_external(target_url)
        window.on(WindowEvents.NEW_WINDOW, on_new_window)

        self._bind_keyboard_layout(window)

        if url:
            window.load_url(url)

        self.bind_window_events(window)
        self._windows.append(window)
        window.on(WindowEvents.CLOSED, lambda *args: self._forget(window))

        logger.info(f"Window created ({options.width}x{options.height} at {options.x},{options.y})")
        return window

    def bind_window_events(self, window: NativeWindow) -> WindowStateBinding:
        binding = WindowStateBinding(
            window,
            self.store,
            slot_key=self.policy.slot_key,
            debounce_ms=self.debounce_ms,
            scheduler=self._scheduler,
        ).bind()
        self._bindings[id(window)] = binding
        return binding

    def flush_pending_saves(self) -> int:
        """Write every debounced save that is still waiting. Returns how many ran."""
        flushed = 0
        for binding in list(self._bindings.values()):
            if binding.pending:
                binding.flush()
                flushed += 1
        return flushed

    def _bind_keyboard_layout(self, window: NativeWindow) -> None:
        keyboard = self.platform.keyboard

        def on_layout_changed(*args):
            if window.is_destroyed():
                return
            layout = {
                "info": keyboard.get_current_keyboard_layout(),
                "mapping": keyboard.get_key_map(),
            }
            try:
                window.send(IpcChannels.KEYBOARD_LAYOUT_CHANGED, layout)
            except RuntimeError as e:
                logger.warning(f"Could not forward keyboard layout: {e}")

        keyboard.on_did_change_keyboard_layout(on_layout_changed)
        window.on(WindowEvents.CLOSED, lambda *args: keyboard.off_did_change_keyboard_layout(on_layout_changed))

    def _forget(self, window: NativeWindow) -> None:
        binding = self._bindings.pop(id(window), None)
        if binding is not None:
            binding.dispose()
        if window in self._windows:
            self._windows.remove(window)
