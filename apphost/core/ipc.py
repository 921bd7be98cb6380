"""
IPC routes between window content and the host process.
"""
import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional
from loguru import logger


class IpcChannels:
    """Channel names shared with window content."""
    # content -> host
    CREATE_NEW_WINDOW = "create-new-window"
    OPEN_EXTERNAL = "open-external"
    # host -> content
    KEYBOARD_LAYOUT_CHANGED = "keyboardLayoutChanged"


class IpcMessageEvent:
    """First argument of every route handler."""

    def __init__(self, channel: str, sender: Optional[Any] = None):
        self.channel = channel
        self.sender = sender


class IpcRouter:
    """
    Process-wide table of inbound routes.

    Usage:
        router.on(IpcChannels.OPEN_EXTERNAL, lambda event, url=None: ...)
        router.emit(IpcChannels.OPEN_EXTERNAL, IpcMessageEvent(...), "https://...")
    """

    def __init__(self):
        self._routes: Dict[str, List[Callable]] = {}

    def on(self, channel: str, handler: Callable) -> None:
        handlers = self._routes.setdefault(channel, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"IPC route bound: {channel}")

    def off(self, channel: str, handler: Callable) -> None:
        if channel in self._routes and handler in self._routes[channel]:
            self._routes[channel].remove(handler)

    def channels(self) -> List[str]:
        return [channel for channel, handlers in self._routes.items() if handlers]

    def emit(self, channel: str, event: Optional[IpcMessageEvent] = None, *args: Any) -> int:
        """
        Dispatch an inbound message. Handler errors are logged, never raised.

        Returns:
            Number of handlers invoked
        """
        handlers = list(self._routes.get(channel, []))
        if not handlers:
            logger.warning(f"No IPC route for channel: {channel}")
            return 0

        event = event or IpcMessageEvent(channel)
        for handler in handlers:
            try:
                result = handler(event, *args)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    task.add_done_callback(lambda t, c=channel: _log_task_error(c, t))
            except Exception as e:
                logger.error(f"Error in IPC handler for {channel}: {e}")
        return len(handlers)


def _log_task_error(channel: str, task: asyncio.Future) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"Error in async IPC handler for {channel}: {task.exception()}")
