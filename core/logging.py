"""
Structured logging for assessments

Every line carries the context bound through LoggerAdapter: which domain
logged it and, inside an assessment, its type, URL and id. URLs are logged
without credentials or query strings.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from pythonjsonlogger import jsonlogger

from core.config import settings

# Record attributes rendered as assessment context, in this order
CONTEXT_FIELDS = ("domain", "assessment_id", "assessment_type", "url", "plugin", "attempt")


def redact_url(url: str) -> str:
    """Strip userinfo, query and fragment so tokens never reach the logs"""
    try:
        parts = urlsplit(url)
        netloc = parts.hostname or ""
        if parts.port:
            netloc = f"{netloc}:{parts.port}"
    except ValueError:
        return "<invalid url>"
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Assessment context attached to a record"""
    context = {}
    for field in CONTEXT_FIELDS:
        value = getattr(record, field, None)
        if value is None:
            continue
        if field == "url" and isinstance(value, str):
            value = redact_url(value)
        context[field] = value
    return context


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with app, level and assessment context"""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["app"] = settings.app_name
        log_record["environment"] = settings.environment
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        # Replaces the raw url the base class copied from extra
        log_record.update(record_context(record))

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


class ContextTextFormatter(logging.Formatter):
    """Readable lines for local runs, context appended as key=value"""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{pairs}]"


def setup_logging() -> None:
    """Configure the root logger from settings"""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)

    if settings.log_format == "json":
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", timestamp=True)
    else:
        formatter = ContextTextFormatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Upstream fetches log every request
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that binds context to every message"""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        # Per-call extra wins over bound context
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def with_context(self, **context) -> "LoggerAdapter":
        """Create a new logger with additional context"""
        new_extra = self.extra.copy()
        new_extra.update(context)
        return LoggerAdapter(self.logger, new_extra)

    def for_assessment(self, assessment_type: str, url: str, assessment_id: Optional[str] = None) -> "LoggerAdapter":
        """Bind the assessment being worked on"""
        context = {"assessment_type": assessment_type, "url": url}
        if assessment_id:
            context["assessment_id"] = assessment_id
        return self.with_context(**context)


def get_logger(name: str, **context) -> LoggerAdapter:
    """
    Get a logger with bound context

    Example:
        logger = get_logger(__name__, domain="d3")
        log = logger.for_assessment("repository", "https://github.com/octocat/hello-world")
        log.info("Assessment complete", extra={"assessment_id": result.id})
    """
    logger = logging.getLogger(name)
    return LoggerAdapter(logger, context)


setup_logging()
