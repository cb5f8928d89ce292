import json
import logging
from datetime import datetime, timezone

# LogRecord attributes that are never copied into the JSON payload
_RESERVED_ATTRS = frozenset(
    (
        "msg",
        "args",
        "levelname",
        "levelno",
        "name",
        "created",
        "msecs",
        "relativeCreated",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "exc_info",
        "exc_text",
        "stack_info",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    )
)


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for production logs.

    - Merges base fields (time, level, name, message) with any attributes
      provided via `extra` on the log record (e.g., event, user_id).
    - If the message is a dict (as emitted by `log_auth_event`), it is
      merged into the payload under its keys.
    - Exceptions are rendered into an `exc` field.
    - Dates are ISO-8601 UTC.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        base = {
            "time": created.strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z",
            "level": record.levelname,
            "name": record.name,
        }

        if isinstance(record.msg, dict):
            payload = {**base, **record.msg}
        else:
            payload = {**base, "message": record.getMessage()}

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            # Only include simple JSON-serializable values
            try:
                json.dumps(value)
                payload.setdefault(key, value)
            except TypeError:
                payload.setdefault(key, str(value))

        return json.dumps(payload, ensure_ascii=False)
