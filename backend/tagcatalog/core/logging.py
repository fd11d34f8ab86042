from __future__ import annotations

import logging
import re

_URL_CREDENTIALS_RE = re.compile(r"(?i)\b([a-z][a-z0-9+.\-]*://)([^/\s:@]+):([^/\s@]+)@")


def mask_url_credentials(text: str) -> str:
    return _URL_CREDENTIALS_RE.sub(r"\1\2:***@", text)


class UrlCredentialsFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except Exception:
            return True
        masked = mask_url_credentials(message)
        if masked != message:
            record.msg = masked
            record.args = ()
        return True


def configure_logging(level: int | str = logging.INFO) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper() or "INFO")
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")
    root = logging.getLogger()
    if not any(isinstance(f, UrlCredentialsFilter) for f in root.filters):
        root.addFilter(UrlCredentialsFilter())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
