"""
Lifecycle Contributions.

Contributions are pluggable participants that receive lifecycle
notifications. Any object may be registered; it takes part in a phase only
if it exposes the matching hook:

    class MyContribution:
        async def on_start(self, host): ...
        def on_ready(self, platform_info): ...
        def on_quit(self): ...

Hooks may return a plain value or an awaitable.
"""
import asyncio
import inspect
from dataclasses import dataclass, field
from enum import Enum
from importlib.metadata import entry_points
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional
from loguru import logger


class LifecyclePhase(Enum):
    """Lifecycle phases, valued by the hook name each one invokes."""
    START = "on_start"
    READY = "on_ready"
    QUIT = "on_quit"


@dataclass(frozen=True)
class ContributionHooks:
    """Capability record of one contribution: each hook is optional."""
    name: str
    contribution: Any
    on_start: Optional[Callable[..., Any]] = None
    on_ready: Optional[Callable[..., Any]] = None
    on_quit: Optional[Callable[..., Any]] = None

    @classmethod
    def from_object(cls, contribution: Any, name: Optional[str] = None) -> "ContributionHooks":
        hooks = {}
        for phase in LifecyclePhase:
            hook = getattr(contribution, phase.value, None)
            hooks[phase.value] = hook if callable(hook) else None
        return cls(
            name=name or getattr(contribution, "name", None) or type(contribution).__name__,
            contribution=contribution,
            **hooks,
        )

    def get(self, phase: LifecyclePhase) -> Optional[Callable[..., Any]]:
        return getattr(self, phase.value)


@dataclass(frozen=True)
class HookFailure:
    contribution: str
    phase: LifecyclePhase
    error: BaseException


@dataclass
class FanOutReport:
    """What happened when a phase was fanned out to all contributions."""
    phase: LifecyclePhase
    invoked: List[str] = field(default_factory=list)
    failures: List[HookFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def first_error(self) -> Optional[BaseException]:
        """Error of the first failure encountered, in completion order."""
        return self.failures[0].error if self.failures else None


class ContributionRegistry:
    """
    Ordered collection of lifecycle contributions.

    Usage:
        registry = ContributionRegistry()
        registry.register(MyContribution())
        registry.load_entry_points()
    """

    ENTRY_POINT_GROUP = "apphost.contributions"

    def __init__(self):
        self._hooks: List[ContributionHooks] = []

    def register(self, contribution: Any, name: Optional[str] = None) -> ContributionHooks:
        """
        Register a contribution at the end of the invocation order.

        Args:
            contribution: Any object, with or without lifecycle hooks
            name: Display name used in logs (defaults to class name)

        Returns:
            The capability record built for the contribution
        """
        for existing in self._hooks:
            if existing.contribution is contribution:
                logger.warning(f"Contribution already registered: {existing.name}")
                return existing

        hooks = ContributionHooks.from_object(contribution, name)
        self._hooks.append(hooks)
        logger.debug(f"Registered contribution: {hooks.name}")
        return hooks

    def unregister(self, contribution: Any) -> bool:
        for hooks in self._hooks:
            if hooks.contribution is contribution:
                self._hooks.remove(hooks)
                return True
        return False

    def load_entry_points(self, group: Optional[str] = None) -> List[str]:
        """
        Register contributions advertised by installed distributions.

        Entry points may name a class (instantiated without arguments) or an
        instance. Broken entry points are logged and skipped.

        Returns:
            Names of the contributions registered
        """
        loaded = []
        for ep in entry_points(group=group or self.ENTRY_POINT_GROUP):
            try:
                target = ep.load()
                contribution = target() if isinstance(target, type) else target
            except Exception as e:
                logger.error(f"Failed to load contribution {ep.name}: {e}")
                continue
            loaded.append(self.register(contribution, ep.name).name)

        if loaded:
            logger.info(f"Loaded {len(loaded)} contributions from entry points")
        return loaded

    def get_contributions(self) -> List[Any]:
        return [hooks.contribution for hooks in self._hooks]

    def get_hooks(self) -> List[ContributionHooks]:
        return list(self._hooks)

    def __iter__(self) -> Iterator[ContributionHooks]:
        return iter(list(self._hooks))

    def __len__(self) -> int:
        return len(self._hooks)


async def fan_out(hooks: Iterable[ContributionHooks], phase: LifecyclePhase, *args: Any) -> FanOutReport:
    """
    Invoke ``phase`` on every contribution that implements it.

    Hooks are initiated synchronously in registration order; awaitable
    results then complete in parallel. A failing hook never cancels the
    others: every failure is collected (in completion order) and logged.
    """
    report = FanOutReport(phase)
    pending: Dict[asyncio.Future, int] = {}
    names: List[str] = []

    for entry in hooks:
        hook = entry.get(phase)
        if hook is None:
            continue
        report.invoked.append(entry.name)
        try:
            result = hook(*args)
        except Exception as e:
            _record_failure(report, entry.name, e)
            continue
        if inspect.isawaitable(result):
            pending[asyncio.ensure_future(result)] = len(names)
            names.append(entry.name)

    remaining = set(pending)
    while remaining:
        done, remaining = await asyncio.wait(remaining, return_when=asyncio.FIRST_COMPLETED)
        for future in sorted(done, key=pending.__getitem__):
            name = names[pending[future]]
            if future.cancelled():
                _record_failure(report, name, asyncio.CancelledError(f"{phase.value} cancelled"))
            elif future.exception() is not None:
                _record_failure(report, name, future.exception())

    logger.debug(
        f"{phase.value}: {len(report.invoked)} invoked, {len(report.failures)} failed"
    )
    return report


def _record_failure(report: FanOutReport, name: str, error: BaseException) -> None:
    report.failures.append(HookFailure(name, report.phase, error))
    logger.opt(exception=error).error(f"Contribution '{name}' failed in {report.phase.value}: {error}")
