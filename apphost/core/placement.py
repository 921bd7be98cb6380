"""
Window Placement.

Initial geometry for new windows: the persisted state of the slot when there
is one, otherwise two thirds of the display nearest the pointer, centered on
that display. Centering is computed by hand because centering on the primary
display can leave windows straddling monitors.
"""
from typing import Iterable, Optional

from pydantic import BaseModel, PositiveInt

from .platform import Point, Rect, Screen
from .window_state import WINDOW_STATE_KEY, WindowState, WindowStateStore


MIN_WIDTH = 200
MIN_HEIGHT = 120


class WindowOptions(BaseModel):
    """Construction options for one native window. Never persisted."""
    show: bool = False
    title: str = ""
    width: PositiveInt
    height: PositiveInt
    min_width: PositiveInt = MIN_WIDTH
    min_height: PositiveInt = MIN_HEIGHT
    x: int
    y: int
    is_maximized: Optional[bool] = None
    url: Optional[str] = None


def compute_default_state(bounds: Rect) -> WindowState:
    """Two thirds of ``bounds``, centered on it."""
    # floor((2 * x + w - width) / 2) == floor(x + (w - width) / 2), x may be negative
    width = max(1, bounds.width * 2 // 3)
    height = max(1, bounds.height * 2 // 3)
    x = (2 * bounds.x + bounds.width - width) // 2
    y = (2 * bounds.y + bounds.height - height) // 2
    return WindowState(width=width, height=height, x=x, y=y)


def nearest_display(point: Point, displays: Iterable[Rect]) -> Optional[Rect]:
    """
    Display containing ``point``, else the one closest to it.

    Returns None when ``displays`` is empty.
    """
    px, py = point
    best = None
    best_distance = None
    for rect in displays:
        dx = max(rect.x - px, 0, px - (rect.x + rect.width - 1))
        dy = max(rect.y - py, 0, py - (rect.y + rect.height - 1))
        distance = dx * dx + dy * dy
        if best is None or distance < best_distance:
            best, best_distance = rect, distance
    return best


class WindowPlacementPolicy:
    """
    Resolves WindowOptions for the next window of a slot.

    Usage:
        policy = WindowPlacementPolicy(store, title="My App")
        options = policy.resolve(platform.screen, url)
    """

    def __init__(
        self,
        store: WindowStateStore,
        title: str = "",
        slot_key: str = WINDOW_STATE_KEY,
        min_width: int = MIN_WIDTH,
        min_height: int = MIN_HEIGHT,
    ):
        self.store = store
        self.title = title
        self.slot_key = slot_key
        self.min_width = min_width
        self.min_height = min_height

    def default_state(self, screen: Screen) -> WindowState:
        display = screen.get_display_nearest_point(screen.get_cursor_screen_point())
        return compute_default_state(display)

    def resolve(self, screen: Screen, url: Optional[str] = None) -> WindowOptions:
        state = self.store.get(self.slot_key, None)
        if state is None:
            state = self.default_state(screen)

        return WindowOptions(
            show=False,
            title=self.title,
            width=state.width,
            height=state.height,
            min_width=self.min_width,
            min_height=self.min_height,
            x=state.x,
            y=state.y,
            is_maximized=state.is_maximized,
            url=url,
        )
