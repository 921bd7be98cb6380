"""
Window State Persistence.

Keeps the last known geometry of each logical window slot in a JSON file so
windows reopen where the user left them. Writes are atomic (temp file and
rename) so a crash mid-write never leaves a truncated record behind.
"""
import asyncio
import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError

from .base_system import BaseSystem
from .platform import NativeWindow, WindowEvents


WINDOW_STATE_KEY = "windowstate"


class WindowState(BaseModel):
    """Last known non-transient geometry of one window slot."""
    model_config = ConfigDict(populate_by_name=True)

    is_maximized: Optional[bool] = Field(default=None, alias="isMaximized")
    width: PositiveInt
    height: PositiveInt
    x: int
    y: int


class WindowStateStore(BaseSystem):
    """
    Durable key/value store of WindowState records.

    Usage:
        store = locator.get_system(WindowStateStore)
        state = store.get("windowstate", default_state)
        store.set("windowstate", state)
    """

    def __init__(self, locator, config, path: Optional[Union[str, Path]] = None):
        super().__init__(locator, config)
        if path is None:
            path = config.data.window.state_file
        self._path = Path(path)
        self._records: Dict[str, Any] = {}
        self._loaded = False
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    async def initialize(self):
        """Load persisted records."""
        self._ensure_loaded()
        await super().initialize()
        logger.info(f"WindowStateStore initialized (file: {self._path})")

    async def shutdown(self):
        await super().shutdown()

    def get(self, key: str, default: Optional[WindowState] = None) -> Optional[WindowState]:
        """Return the stored state for ``key``, or ``default`` if missing or invalid."""
        with self._lock:
            self._ensure_loaded()
            raw = self._records.get(key)
        if raw is None:
            return default
        try:
            return WindowState.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid window state '{key}': {e}")
            return default

    def set(self, key: str, value: WindowState) -> bool:
        """
        Store ``value`` under ``key`` and write the file.

        Returns:
            False if the write failed (the failure is logged)
        """
        with self._lock:
            self._ensure_loaded()
            self._records[key] = value.model_dump()
            try:
                self._write()
            except OSError as e:
                logger.error(f"Failed to save window state to {self._path}: {e}")
                return False
        return True

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self._path.exists():
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load window state from {self._path}: {e}")
            return
        if not isinstance(data, dict):
            logger.warning(f"Window state file {self._path} is not an object, ignoring")
            return
        self._records = data

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._records, f, indent=2)
        os.replace(tmp_path, self._path)


class Scheduler(Protocol):
    """Anything with asyncio's ``call_later`` (the running loop by default)."""
    def call_later(self, delay: float, callback, *args) -> Any: ...


class WindowStateBinding:
    """
    Saves one window's geometry into a store slot.

    ``close`` saves immediately; ``resize``/``move`` restart a quiet-window
    timer so a drag produces a single write once the user stops.
    """

    def __init__(
        self,
        window: NativeWindow,
        store: WindowStateStore,
        slot_key: str = WINDOW_STATE_KEY,
        debounce_ms: int = 1000,
        scheduler: Optional[Scheduler] = None,
    ):
        self.window = window
        self.store = store
        self.slot_key = slot_key
        self.delay = debounce_ms / 1000
        self._scheduler = scheduler
        self._handle = None

    def bind(self) -> "WindowStateBinding":
        self.window.on(WindowEvents.CLOSE, self.save_now)
        self.window.on(WindowEvents.RESIZE, self.schedule_save)
        self.window.on(WindowEvents.MOVE, self.schedule_save)
        self.window.on(WindowEvents.CLOSED, self.dispose)
        return self

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule_save(self, *args) -> None:
        self._cancel()
        scheduler = self._scheduler
        if scheduler is None:
            try:
                scheduler = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop, saving window state immediately")
                self.save_now()
                return
        self._handle = scheduler.call_later(self.delay, self._on_timeout)
        logger.debug(f"Window state save scheduled in {self.delay:.3f}s")

    def save_now(self, *args) -> bool:
        """Persist the current geometry. Errors are logged, never raised."""
        self._cancel()
        try:
            return self.store.set(self.slot_key, self._capture())
        except (OSError, ValueError, RuntimeError) as e:
            # RuntimeError covers native objects deleted underneath us
            logger.error(f"Error while saving window state: {e}")
            return False

    def flush(self) -> None:
        """Run a pending debounced save right away."""
        if self.pending:
            self.save_now()

    def dispose(self, *args) -> None:
        self._cancel()

    def _on_timeout(self) -> None:
        self._handle = None
        self.save_now()

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _capture(self) -> WindowState:
        if self.window.is_maximized():
            # Maximized bounds are the whole screen; keep the restore geometry
            previous = self.store.get(self.slot_key)
            if previous is not None:
                return previous.model_copy(update={"is_maximized": True})
            logger.debug("No restore geometry stored, saving maximized bounds")
            bounds = self.window.get_bounds()
            maximized = True
        else:
            bounds = self.window.get_bounds()
            maximized = False
        return WindowState(
            is_maximized=maximized,
            width=bounds.width,
            height=bounds.height,
            x=bounds.x,
            y=bounds.y,
        )
