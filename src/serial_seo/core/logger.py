"""Structured logging with JSON file output and plain console output."""

import logging
import sys
from pathlib import Path
from datetime import datetime, timezone
import json


# Extra attributes copied into JSON records when present
_EXTRA_FIELDS = ("path", "intent", "sitemap_type", "page", "duration_ms", "user_agent", "query")


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for attr in _EXTRA_FIELDS:
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        # Add exception info
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(log_dir: Path, log_level: str = "INFO", log_format: str = "json", to_file: bool = False):
    """Setup logging configuration."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers
    root_logger.handlers.clear()

    if to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d')

        if log_format == "json":
            json_handler = logging.FileHandler(log_dir / f"serial_seo_{stamp}.jsonl", encoding="utf-8")
            json_handler.setFormatter(JSONFormatter())
            root_logger.addHandler(json_handler)
        else:
            text_handler = logging.FileHandler(log_dir / f"serial_seo_{stamp}.log", encoding="utf-8")
            text_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            root_logger.addHandler(text_handler)

    # Console handler: JSON lines for hosted deployments, text otherwise
    console_handler = logging.StreamHandler(sys.stderr)
    if log_format == "json" and not to_file:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
