import pytest

from backend.v1.core.registries import JobRegistry
from backend.v1.infra.jobs.errors import UnknownJobTypeError


class DummyHandler:
    async def handle(self, job):
        return None


def test_register_and_get():
    registry = JobRegistry()
    handler = DummyHandler()

    registry.register("noop", handler)

    assert registry.get("noop") is handler
    assert "noop" in registry
    assert "other" not in registry
    assert registry.list() == ["noop"]


def test_get_unknown_type():
    registry = JobRegistry()

    with pytest.raises(UnknownJobTypeError) as exc_info:
        registry.get("nope")

    assert exc_info.value.job_type == "nope"
    assert isinstance(exc_info.value, LookupError)


def test_register_replaces_existing():
    registry = JobRegistry()
    first, second = DummyHandler(), DummyHandler()
    registry.register("a", first)
    registry.register("a", second)

    assert registry.get("a") is second
    assert registry.list() == ["a"]


def test_list_is_sorted():
    registry = JobRegistry()
    for job_type in ("send_email", "report", "cleanup"):
        registry.register(job_type, DummyHandler())

    assert registry.list() == ["cleanup", "report", "send_email"]


def test_blank_type_is_rejected():
    registry = JobRegistry()

    with pytest.raises(ValueError, match="job type is required"):
        registry.register("  ", DummyHandler())


def test_frozen_registry_rejects_registration():
    registry = JobRegistry()
    registry.register("noop", DummyHandler())
    registry.freeze()

    assert registry.is_frozen()
    with pytest.raises(RuntimeError, match="registry is frozen"):
        registry.register("late", DummyHandler())
    assert registry.get("noop") is not None
