# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any
from opentelemetry import trace, _logs
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.semconv.resource import ResourceAttributes


_configured = False
_STANDARD_FIELDS: set[str] = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "color_message",
}


def _trace_fields() -> dict[str, str]:
    span_ctx = trace.get_current_span().get_span_context()
    if span_ctx and span_ctx.is_valid:
        return {
            "trace_id": format(span_ctx.trace_id, "032x"),
            "span_id": format(span_ctx.span_id, "016x"),
        }
    return {}


def _record_extras(record: logging.LogRecord, taken: dict[str, Any]) -> dict[str, Any]:
    """Return the custom ``extra=`` fields of a record not already in ``taken``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_FIELDS and key not in taken
    }


class JsonFormatter(logging.Formatter):
    """Format log records as structured JSON."""

    def __init__(self, service_name: str, environment: str) -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()

        payload: dict[str, Any] = {
            "timestamp": ts,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
        }
        payload.update(_trace_fields())
        payload.update(_record_extras(record, payload))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=True, default=str)


class PrettyFormatter(logging.Formatter):
    """Human-readable, single-line log formatter."""

    def __init__(self, service_name: str, environment: str) -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()

        parts = [
            ts,
            f"{record.levelname:<7}",
            f"[{record.name}]",
            record.getMessage(),
        ]

        extras: dict[str, Any] = {
            "service": self.service_name,
            "env": self.environment,
        }
        extras.update(_trace_fields())
        extras.update(_record_extras(record, extras))

        if record.exc_info:
            extras["exception"] = self.formatException(record.exc_info)

        parts.append(" ".join(f"{k}={v}" for k, v in extras.items()))
        return " ".join(filter(None, parts))


def build_formatter(
    log_format: str, service_name: str, environment: str
) -> logging.Formatter:
    """Pick the console formatter for ``LOG_FORMAT`` (``json`` unless ``pretty``)."""
    if log_format.lower() == "pretty":
        return PrettyFormatter(service_name, environment)
    return JsonFormatter(service_name, environment)


def configure_logging(
    service_name: str,
    service_version: str | None = None,
    environment: str | None = None,
) -> None:
    """
    Configure application logging with OpenTelemetry and console output.

    This sets up:
      - Root logger with JSON (or pretty) console output
      - OpenTelemetry logger provider with OTLP HTTP exporter (if an endpoint is set)
      - uvicorn loggers propagating into the root handlers
      - Respect for LOG_LEVEL / LOG_FORMAT / ENVIRONMENT / OTEL_EXPORTER_OTLP* env vars

    Calling it more than once is a no-op.
    """
    global _configured
    if _configured:
        return

    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    env: str = (
        environment
        if environment is not None
        else os.getenv("ENVIRONMENT", "development")
    )

    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: service_name,
            ResourceAttributes.SERVICE_VERSION: service_version or "unknown",
            ResourceAttributes.DEPLOYMENT_ENVIRONMENT: env,
        }
    )

    logger_provider = LoggerProvider(resource=resource)
    _logs.set_logger_provider(logger_provider)

    otlp_endpoint = (
        os.getenv("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT")
        or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        or None
    )

    if otlp_endpoint:
        try:
            otlp_exporter = OTLPLogExporter(endpoint=otlp_endpoint)
            logger_provider.add_log_record_processor(
                BatchLogRecordProcessor(otlp_exporter)
            )
        except (
            Exception
        ) as err:  # pragma: no cover - exporter failures handled gracefully
            logging.getLogger(__name__).warning(
                "OTLP exporter setup failed; console logging only",
                extra={"error": str(err)},
            )

    otel_handler = LoggingHandler(level=log_level, logger_provider=logger_provider)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        build_formatter(os.getenv("LOG_FORMAT", "json"), service_name, env)
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(console_handler)
    root.addHandler(otel_handler)

    # uvicorn installs its own handlers unless told otherwise; route them here
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True

    _configured = True
