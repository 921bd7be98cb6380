import asyncio
from unittest.mock import MagicMock

import pytest

from apphost.core import contributions as contributions_module
from apphost.core.contributions import (
    ContributionHooks,
    ContributionRegistry,
    LifecyclePhase,
    fan_out,
)


class Recorder:
    """Contribution whose hooks append to a shared log."""

    def __init__(self, name, log, delay=0.0, fail=None):
        self.name = name
        self.log = log
        self.delay = delay
        self.fail = fail

    async def on_start(self, host):
        self.log.append(f"{self.name}:begin")
        await asyncio.sleep(self.delay)
        if self.fail is not None:
            raise self.fail
        self.log.append(f"{self.name}:end")


class OnlyQuit:
    def __init__(self):
        self.calls = 0

    def on_quit(self):
        self.calls += 1


class TestContributionHooks:
    def test_from_object_picks_up_present_hooks(self):
        hooks = ContributionHooks.from_object(OnlyQuit())

        assert hooks.name == "OnlyQuit"
        assert hooks.on_start is None
        assert hooks.on_ready is None
        assert hooks.get(LifecyclePhase.QUIT) is not None

    def test_non_callable_attribute_is_not_a_hook(self):
        contribution = MagicMock(spec=[])
        contribution.on_start = "not callable"

        hooks = ContributionHooks.from_object(contribution, name="odd")

        assert hooks.on_start is None
        assert hooks.name == "odd"

    def test_name_attribute_used(self):
        hooks = ContributionHooks.from_object(Recorder("rec", []))
        assert hooks.name == "rec"


class TestContributionRegistry:
    def test_registration_order_preserved(self):
        registry = ContributionRegistry()
        a, b, c = OnlyQuit(), OnlyQuit(), OnlyQuit()
        for contribution in (a, b, c):
            registry.register(contribution)

        assert registry.get_contributions() == [a, b, c]
        assert len(registry) == 3

    def test_duplicate_registration_ignored(self):
        registry = ContributionRegistry()
        contribution = OnlyQuit()

        first = registry.register(contribution)
        second = registry.register(contribution)

        assert first is second
        assert len(registry) == 1

    def test_unregister(self):
        registry = ContributionRegistry()
        contribution = OnlyQuit()
        registry.register(contribution)

        assert registry.unregister(contribution)
        assert not registry.unregister(contribution)
        assert len(registry) == 0

    def test_load_entry_points(self, monkeypatch):
        good = MagicMock()
        good.name = "good"
        good.load.return_value = OnlyQuit
        broken = MagicMock()
        broken.name = "broken"
        broken.load.side_effect = ImportError("missing module")

        seen_groups = []

        def fake_entry_points(group):
            seen_groups.append(group)
            return [broken, good]

        monkeypatch.setattr(contributions_module, "entry_points", fake_entry_points)
        registry = ContributionRegistry()

        loaded = registry.load_entry_points()

        assert seen_groups == [ContributionRegistry.ENTRY_POINT_GROUP]
        assert loaded == ["good"]
        assert isinstance(registry.get_contributions()[0], OnlyQuit)

    def test_entry_point_instance_registered_as_is(self, monkeypatch):
        instance = OnlyQuit()
        ep = MagicMock()
        ep.name = "instance"
        ep.load.return_value = instance
        monkeypatch.setattr(contributions_module, "entry_points", lambda group: [ep])

        registry = ContributionRegistry()
        registry.load_entry_points("custom.group")

        assert registry.get_contributions() == [instance]


class TestFanOut:
    @pytest.mark.asyncio
    async def test_contribution_without_hooks_is_tolerated(self):
        registry = ContributionRegistry()
        registry.register(object())

        report = await fan_out(registry.get_hooks(), LifecyclePhase.START, None)

        assert report.ok
        assert report.invoked == []

    @pytest.mark.asyncio
    async def test_hooks_initiated_in_registration_order(self):
        log = []
        registry = ContributionRegistry()
        # Slowest first, so completion order differs from initiation order
        registry.register(Recorder("a", log, delay=0.03))
        registry.register(Recorder("b", log, delay=0.02))
        registry.register(Recorder("c", log, delay=0.0))

        report = await fan_out(registry.get_hooks(), LifecyclePhase.START, "host")

        assert log[:3] == ["a:begin", "b:begin", "c:begin"]
        assert log[3:] == ["c:end", "b:end", "a:end"]
        assert report.invoked == ["a", "b", "c"]
        assert report.ok

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_siblings(self):
        log = []
        error = RuntimeError("a failed")
        registry = ContributionRegistry()
        registry.register(Recorder("a", log, fail=error))
        registry.register(Recorder("b", log, delay=0.01))

        report = await fan_out(registry.get_hooks(), LifecyclePhase.START, None)

        assert "b:end" in log
        assert len(report.failures) == 1
        assert report.failures[0].contribution == "a"
        assert report.failures[0].phase is LifecyclePhase.START
        assert report.first_error is error

    @pytest.mark.asyncio
    async def test_first_error_in_completion_order(self):
        log = []
        slow_error = RuntimeError("slow")
        fast_error = RuntimeError("fast")
        registry = ContributionRegistry()
        registry.register(Recorder("slow", log, delay=0.03, fail=slow_error))
        registry.register(Recorder("fast", log, delay=0.0, fail=fast_error))

        report = await fan_out(registry.get_hooks(), LifecyclePhase.START, None)

        assert [f.error for f in report.failures] == [fast_error, slow_error]
        assert report.first_error is fast_error

    @pytest.mark.asyncio
    async def test_synchronous_raise_is_collected(self):
        quitter = OnlyQuit()

        class Broken:
            def on_quit(self):
                raise ValueError("sync failure")

        registry = ContributionRegistry()
        registry.register(Broken())
        registry.register(quitter)

        report = await fan_out(registry.get_hooks(), LifecyclePhase.QUIT)

        assert quitter.calls == 1
        assert isinstance(report.first_error, ValueError)

    @pytest.mark.asyncio
    async def test_failures_are_logged(self, caplog):
        class Broken:
            def on_ready(self, info):
                raise ValueError("ready failure")

        registry = ContributionRegistry()
        registry.register(Broken())

        await fan_out(registry.get_hooks(), LifecyclePhase.READY, {})

        assert "ready failure" in caplog.text

    @pytest.mark.asyncio
    async def test_plain_return_values_count_as_success(self):
        class Plain:
            def on_ready(self, info):
                return 42

        registry = ContributionRegistry()
        registry.register(Plain())

        report = await fan_out(registry.get_hooks(), LifecyclePhase.READY, {})

        assert report.ok
        assert report.invoked == ["Plain"]
