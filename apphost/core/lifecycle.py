"""
Application Lifecycle State Machine.

Tracks which phase the host is in and notifies listeners on transitions.
"""
from enum import Enum
from typing import Callable, List
from loguru import logger


class AppState(Enum):
    """Host lifecycle states."""
    CREATED = "created"
    STARTING = "starting"
    STARTED = "started"
    READY = "ready"
    STOPPING = "stopping"
    STOPPED = "stopped"


class LifecycleError(Exception):
    """Exception raised for invalid lifecycle transitions or repeated entry points."""
    pass


class LifecycleManager:
    """
    Manages host lifecycle state transitions.

    Usage:
        lifecycle = LifecycleManager()
        lifecycle.add_listener(lambda old, new: print(old, new))
        lifecycle.transition_to(AppState.STARTING)
    """

    # Valid state transitions
    VALID_TRANSITIONS = {
        AppState.CREATED: [AppState.STARTING, AppState.STOPPING],
        AppState.STARTING: [AppState.STARTED, AppState.STOPPING],
        AppState.STARTED: [AppState.READY, AppState.STOPPING],
        AppState.READY: [AppState.STOPPING],
        AppState.STOPPING: [AppState.STOPPED],
        AppState.STOPPED: [],
    }

    def __init__(self):
        """Initialize the lifecycle manager."""
        self._state = AppState.CREATED
        self._listeners: List[Callable[[AppState, AppState], None]] = []

    @property
    def state(self) -> AppState:
        """Get current host state."""
        return self._state

    def can_transition(self, target: AppState) -> bool:
        """
        Check if can transition to target state.

        Args:
            target: Target state

        Returns:
            True if transition is valid
        """
        valid_targets = self.VALID_TRANSITIONS.get(self._state, [])
        return target in valid_targets

    def transition_to(self, target: AppState) -> bool:
        """
        Transition to target state.

        Args:
            target: Target state

        Returns:
            True if transition succeeded

        Raises:
            LifecycleError: If transition is invalid
        """
        if not self.can_transition(target):
            raise LifecycleError(
                f"Invalid transition: {self._state.value} -> {target.value}"
            )

        old_state = self._state
        self._state = target

        logger.info(f"Lifecycle: {old_state.value} -> {target.value}")

        self._notify_listeners(old_state, target)

        return True

    def add_listener(self, listener: Callable[[AppState, AppState], None]) -> None:
        """
        Add a listener for all state changes.

        Args:
            listener: Callable(old_state, new_state)
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable) -> None:
        """Remove a state change listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify_listeners(self, old: AppState, new: AppState) -> None:
        """Notify all state change listeners."""
        for listener in self._listeners:
            try:
                listener(old, new)
            except Exception as e:
                logger.error(f"Listener error: {e}")

    # Convenience properties
    @property
    def is_ready(self) -> bool:
        return self._state == AppState.READY

    @property
    def is_stopping(self) -> bool:
        return self._state == AppState.STOPPING

    @property
    def is_stopped(self) -> bool:
        return self._state == AppState.STOPPED
