"""
In-memory stand-ins for the native platform, used across the test suite.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

from apphost.core.events import Signal
from apphost.core.ipc import IpcRouter
from apphost.core.placement import WindowOptions, nearest_display
from apphost.core.platform import MenuItem, NativeEvent, Rect, WindowEvents


class FakeWindow:
    def __init__(self, options: WindowOptions):
        self.options = options
        self.bounds = Rect(options.x, options.y, options.width, options.height)
        self.maximized = False
        self.visible = False
        self.destroyed = False
        self.loaded_urls: List[str] = []
        self.sent: List[Tuple[str, Any]] = []
        self._events: Dict[str, Signal] = {}

    # --- NativeWindow ---
    def on(self, event: str, callback: Callable) -> None:
        self._events.setdefault(event, Signal(event)).connect(callback)

    def show(self) -> None:
        self.visible = True

    def maximize(self) -> None:
        self.maximized = True

    def is_maximized(self) -> bool:
        return self.maximized

    def get_bounds(self) -> Rect:
        if self.destroyed:
            raise RuntimeError("window already destroyed")
        return self.bounds

    def is_destroyed(self) -> bool:
        return self.destroyed

    def load_url(self, url: str) -> None:
        self.loaded_urls.append(url)

    def send(self, channel: str, payload: Any) -> None:
        if self.destroyed:
            raise RuntimeError("window already destroyed")
        self.sent.append((channel, payload))

    # --- test helpers ---
    def emit(self, event: str, *args) -> None:
        if event in self._events:
            self._events[event].emit(*args)

    def listener_count(self, event: str) -> int:
        return len(self._events.get(event, []))

    def resize_to(self, width: int, height: int) -> None:
        self.bounds = Rect(self.bounds.x, self.bounds.y, width, height)
        self.emit(WindowEvents.RESIZE)

    def move_to(self, x: int, y: int) -> None:
        self.bounds = Rect(x, y, self.bounds.width, self.bounds.height)
        self.emit(WindowEvents.MOVE)

    def close(self) -> None:
        self.emit(WindowEvents.CLOSE, NativeEvent())
        self.destroyed = True
        self.emit(WindowEvents.CLOSED)


class FakeScreen:
    def __init__(self, displays: Optional[List[Rect]] = None, cursor=(0, 0)):
        self.displays = displays or [Rect(0, 0, 1920, 1080)]
        self.cursor = cursor

    def get_cursor_screen_point(self):
        return self.cursor

    def get_display_nearest_point(self, point):
        return nearest_display(point, self.displays)


class FakeKeyboard:
    def __init__(self):
        self.layout = {"id": "us"}
        self.key_map = {"KeyA": "a"}
        self._changed = Signal("layout")

    def on_did_change_keyboard_layout(self, callback):
        self._changed.connect(callback)

    def off_did_change_keyboard_layout(self, callback):
        self._changed.disconnect(callback)

    def get_current_keyboard_layout(self):
        return self.layout

    def get_key_map(self):
        return self.key_map

    @property
    def listener_count(self) -> int:
        return len(self._changed)

    def change_layout(self, layout_id: str) -> None:
        self.layout = {"id": layout_id}
        self._changed.emit()


class FakePlatform:
    def __init__(self, screen: Optional[FakeScreen] = None):
        self.screen = screen or FakeScreen()
        self.keyboard = FakeKeyboard()
        self.ipc = IpcRouter()
        self.ready_listeners: List[Callable] = []
        self.windows: List[FakeWindow] = []
        self.opened_urls: List[str] = []
        self.menus: List[List[MenuItem]] = []

    def on_ready(self, callback):
        self.ready_listeners.append(callback)

    def fire_ready(self, info=None) -> list:
        return [listener(info) for listener in self.ready_listeners]

    def create_window(self, options: WindowOptions) -> FakeWindow:
        window = FakeWindow(options)
        self.windows.append(window)
        return window

    def open_external(self, url: str) -> None:
        self.opened_urls.append(url)

    def set_application_menu(self, template):
        self.menus.append(template)


class ManualHandle:
    def __init__(self, when_ms: int, callback: Callable, args: tuple):
        self.when_ms = when_ms
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """``call_later`` on a manual millisecond clock."""

    def __init__(self):
        self.now_ms = 0
        self._handles: List[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable, *args) -> ManualHandle:
        handle = ManualHandle(self.now_ms + round(delay * 1000), callback, args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> List[ManualHandle]:
        return [h for h in self._handles if not h.cancelled]

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [h for h in self.pending if h.when_ms <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when_ms)
            self._handles.remove(handle)
            self.now_ms = handle.when_ms
            handle.callback(*handle.args)
        self.now_ms = target
