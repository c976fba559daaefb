"""Run cci as ``python -m ci_composer``.

Records reaching the root logger (from cci's dependencies) are written to
stderr as one JSON object per line. cci's own records go through the
handlers ``configure_logging`` installs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from ci_composer.cli import app


class JsonLogFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True)


def _install_root_handler(level: int = logging.WARNING) -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonLogFormatter())
    root.addHandler(handler)
    root.setLevel(level)


def main() -> None:
    _install_root_handler()
    app(prog_name="cci")


if __name__ == "__main__":
    main()
