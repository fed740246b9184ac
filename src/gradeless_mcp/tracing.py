"""Optional MLflow tracing integration.

The ``trace()`` decorator wraps dispatcher operations as ``TOOL`` spans so
both tool transports show up in the same experiment.

Guarded import — the server runs fine without ``mlflow-tracing`` installed.
Every entry point takes the flag or the :class:`ServerConfig` it should obey;
nothing here reads the global config.

Env vars (all optional, read by :mod:`gradeless_mcp.config`):
    MLFLOW_TRACKING_URI: Where to store traces. Empty = tracing disabled.
    MLFLOW_EXPERIMENT_NAME: Experiment name (default ``gradeless-mcp``).
    GRADELESS_TRACING_ENABLED: Set to ``"false"`` to force-disable even with a URI.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import ServerConfig

logger = logging.getLogger(__name__)

try:
    import mlflow

    _HAS_MLFLOW = True
except ImportError:
    _HAS_MLFLOW = False


def is_enabled(enabled: bool) -> bool:
    """Return True when mlflow-tracing is installed and *enabled* is set."""
    return _HAS_MLFLOW and enabled


def trace(
    func: Callable | None = None,
    *,
    enabled: bool,
    name: str | None = None,
    span_type: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable:
    """Drop-in replacement for ``@mlflow.trace`` — identity when tracing is off."""
    if not is_enabled(enabled):
        return func if func is not None else (lambda f: f)
    return mlflow.trace(func, name=name, span_type=span_type, attributes=attributes)


def setup(cfg: ServerConfig) -> None:
    """Point MLflow at the tracking server named in *cfg*.

    Failures are logged and swallowed — tracing must never prevent the
    server from starting.
    """
    if not is_enabled(cfg.tracing_enabled):
        return

    try:
        mlflow.set_tracking_uri(cfg.mlflow_tracking_uri)
        mlflow.set_experiment(cfg.mlflow_experiment_name)
        logger.info(
            "MLflow tracing enabled (uri=%s, experiment=%s)",
            cfg.mlflow_tracking_uri,
            cfg.mlflow_experiment_name,
        )
    except Exception:
        logger.warning("MLflow tracing setup failed, continuing without tracing", exc_info=True)


def shutdown(cfg: ServerConfig) -> None:
    """Flush pending async traces."""
    if not is_enabled(cfg.tracing_enabled):
        return

    try:
        mlflow.flush_trace_async_logging()
        logger.info("MLflow traces flushed")
    except Exception:
        logger.warning("MLflow trace flush failed", exc_info=True)
