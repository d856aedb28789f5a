import pytest

from richtext_engine.runtime import telemetry


def test_unknown_preset_is_rejected() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(preset="performance")


def test_unknown_event_level_is_rejected() -> None:
    with pytest.raises(ValueError):
        telemetry.record_event("tests.level", level="loud")


def test_span_reraises_failures() -> None:
    with pytest.raises(KeyError):
        with telemetry.span("tests::fail", component="tests", metadata={"step": 1}) as handle:
            handle.add_metadata("stage", "before")
            raise KeyError("boom")


def test_loggers_are_cached_per_name() -> None:
    assert telemetry.get_logger("tests") is telemetry.get_logger("tests")
