"""Tests for the optional MLflow tracing integration."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

import gradeless_mcp.tracing as mod
from gradeless_mcp.config import ServerConfig
from gradeless_mcp.dispatcher import Dispatcher
from gradeless_mcp.server import create_app
from tests.conftest import PUBLIC_URL

pytestmark = pytest.mark.unit


def _make_config(**overrides) -> ServerConfig:
    """ServerConfig with tracing switched on against a local tracking URI."""
    defaults = {
        "tracing_enabled": True,
        "mlflow_tracking_uri": "http://127.0.0.1:5001",
        "mlflow_experiment_name": "gradeless-mcp",
    }
    defaults.update(overrides)
    return ServerConfig(**defaults)


@pytest.fixture()
def fake_mlflow(monkeypatch):
    """Pretend mlflow is installed and swap in a mock module."""
    mock_mlflow = MagicMock()
    monkeypatch.setattr(mod, "_HAS_MLFLOW", True)
    monkeypatch.setattr(mod, "mlflow", mock_mlflow, raising=False)
    return mock_mlflow


@pytest.fixture()
def no_global_config(monkeypatch):
    """Fail loudly if anything falls back to the process-wide config."""
    def _forbidden():
        raise AssertionError("global config read")

    monkeypatch.setattr("gradeless_mcp.config.get_config", _forbidden)
    monkeypatch.setattr("gradeless_mcp.server.get_config", _forbidden)


class TestIsEnabled:
    def test_true_when_installed_and_enabled(self, fake_mlflow):
        assert mod.is_enabled(True) is True

    def test_false_when_not_installed(self, monkeypatch):
        monkeypatch.setattr(mod, "_HAS_MLFLOW", False)
        assert mod.is_enabled(True) is False

    def test_false_when_flag_off(self, fake_mlflow):
        assert mod.is_enabled(False) is False


class TestTrace:
    def test_identity_when_disabled(self, fake_mlflow):
        async def handler():
            return "ok"

        assert mod.trace(handler, enabled=False, name="x", span_type="TOOL") is handler
        assert mod.trace(enabled=False, name="x")(handler) is handler
        fake_mlflow.trace.assert_not_called()

    def test_wraps_when_enabled(self, fake_mlflow):
        async def handler():
            return "ok"

        mod.trace(handler, enabled=True, name="open_lesson", span_type="TOOL")
        fake_mlflow.trace.assert_called_once_with(
            handler, name="open_lesson", span_type="TOOL", attributes=None
        )


class TestSetupShutdown:
    def test_setup_configures_mlflow(self, fake_mlflow):
        mod.setup(_make_config())
        fake_mlflow.set_tracking_uri.assert_called_once_with("http://127.0.0.1:5001")
        fake_mlflow.set_experiment.assert_called_once_with("gradeless-mcp")

    def test_setup_noop_when_disabled(self, fake_mlflow):
        mod.setup(_make_config(tracing_enabled=False))
        fake_mlflow.set_tracking_uri.assert_not_called()

    def test_setup_failure_is_swallowed(self, fake_mlflow):
        fake_mlflow.set_tracking_uri.side_effect = RuntimeError("unreachable")
        mod.setup(_make_config())

    def test_shutdown_flushes(self, fake_mlflow):
        mod.shutdown(_make_config())
        fake_mlflow.flush_trace_async_logging.assert_called_once()

    def test_shutdown_noop_when_disabled(self, fake_mlflow):
        mod.shutdown(_make_config(tracing_enabled=False))
        fake_mlflow.flush_trace_async_logging.assert_not_called()


class TestInjectedConfig:
    """Tracing follows the config handed to the app, not the global one."""

    def test_dispatcher_spans_follow_flag(self, fake_mlflow, store, no_global_config):
        Dispatcher(store, base_url=PUBLIC_URL, tracing_enabled=True)
        names = [call.kwargs["name"] for call in fake_mlflow.trace.call_args_list]
        assert names == ["list_lessons", "open_lesson"]

    def test_dispatcher_untraced_by_default(self, fake_mlflow, store, no_global_config):
        Dispatcher(store, base_url=PUBLIC_URL)
        fake_mlflow.trace.assert_not_called()

    def test_create_app_uses_injected_config(self, fake_mlflow, make_config, no_global_config):
        create_app(make_config(tracing_enabled=False))
        fake_mlflow.trace.assert_not_called()

        create_app(make_config(tracing_enabled=True))
        assert fake_mlflow.trace.call_count == 2

    async def test_lifespan_sets_up_and_flushes(self, fake_mlflow, make_config):
        app = create_app(make_config(tracing_enabled=True, mlflow_tracking_uri="http://mlflow.test"))
        async with app.router.lifespan_context(app):
            fake_mlflow.set_tracking_uri.assert_called_once_with("http://mlflow.test")
        fake_mlflow.flush_trace_async_logging.assert_called_once()
