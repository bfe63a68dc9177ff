"""structlog configuration for crudkit.

crudkit runs inside a host application, so output is scoped to the
``crudkit`` logger tree: one stderr handler is attached there and
propagation stops. The host's root logger is never touched.

Records render as console lines (default) or JSON lines (``log_json``).
stdlib records from crudkit modules and native structlog events share one
processor chain.

``crudkit.telemetry`` emits ``span.complete`` at DEBUG. It is opened on
its own when telemetry is on, so span trees are recorded without the rest
of the debug output.
"""

from __future__ import annotations

import logging
import sys

import structlog

PACKAGE_LOGGER = "crudkit"
TELEMETRY_LOGGER = "crudkit.telemetry"

_HANDLER_NAME = "crudkit.stderr"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _stderr_handler(log_json: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )
    return handler


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    telemetry: bool = False,
) -> None:
    """Route ``crudkit`` logging through structlog to stderr.

    Safe to call again; the previous crudkit handler is replaced and any
    handler the host attached is kept.

    Args:
        verbose: DEBUG for every crudkit module. When False, only WARNING+.
        log_json: Use the JSON renderer instead of the console renderer.
        telemetry: DEBUG for ``crudkit.telemetry`` only, so completed spans
            are written even when *verbose* is off.
    """
    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    package = logging.getLogger(PACKAGE_LOGGER)
    for stale in [h for h in package.handlers if h.get_name() == _HANDLER_NAME]:
        package.removeHandler(stale)
    package.addHandler(_stderr_handler(log_json))
    package.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package.propagate = False

    spans = logging.getLogger(TELEMETRY_LOGGER)
    spans.setLevel(logging.DEBUG if verbose or telemetry else logging.NOTSET)
