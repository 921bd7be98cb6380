"""
Host Platform Port.

The native platform (application object, windows, screens, menus, shell)
is a black box to the host core. These protocols list the calls the core
makes and the events it consumes; ``apphost.ui.qt_host`` implements them
with PySide6.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, TYPE_CHECKING, runtime_checkable

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .ipc import IpcRouter
    from .placement import WindowOptions


Point = Tuple[int, int]


@dataclass(frozen=True)
class Rect:
    """Integer rectangle in virtual desktop coordinates (x/y may be negative)."""
    x: int
    y: int
    width: int
    height: int


class WindowEvents:
    """Native per-window event names."""
    READY_TO_SHOW = "ready-to-show"
    CLOSE = "close"
    CLOSED = "closed"
    RESIZE = "resize"
    MOVE = "move"
    NEW_WINDOW = "new-window"


class NativeEvent:
    """Event object handed to listeners that may cancel the default action."""

    def __init__(self, **details: Any):
        self.details = details
        self.default_prevented = False

    def prevent_default(self) -> None:
        self.default_prevented = True


class MenuItem(BaseModel):
    """Application menu template entry."""
    label: Optional[str] = None
    role: Optional[str] = None
    submenu: List["MenuItem"] = Field(default_factory=list)


@runtime_checkable
class NativeWindow(Protocol):
    def on(self, event: str, callback: Callable[..., Any]) -> None: ...

    def show(self) -> None: ...

    def maximize(self) -> None: ...

    def is_maximized(self) -> bool: ...

    def get_bounds(self) -> Rect: ...

    def is_destroyed(self) -> bool: ...

    def load_url(self, url: str) -> None: ...

    def send(self, channel: str, payload: Any) -> None: ...


class Screen(Protocol):
    def get_cursor_screen_point(self) -> Point: ...

    def get_display_nearest_point(self, point: Point) -> Rect: ...


class KeyboardLayoutSource(Protocol):
    def on_did_change_keyboard_layout(self, callback: Callable[[], None]) -> None: ...

    def off_did_change_keyboard_layout(self, callback: Callable[[], None]) -> None: ...

    def get_current_keyboard_layout(self) -> Dict[str, Any]: ...

    def get_key_map(self) -> Dict[str, Any]: ...


class HostPlatform(Protocol):
    """Everything the orchestrator needs from the native platform."""
    screen: Screen
    keyboard: KeyboardLayoutSource
    ipc: "IpcRouter"

    def on_ready(self, callback: Callable[[Dict[str, Any]], Any]) -> None: ...

    def create_window(self, options: "WindowOptions") -> NativeWindow: ...

    def open_external(self, url: str) -> None: ...

    def set_application_menu(self, template: List[MenuItem]) -> None: ...
