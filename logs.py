"""Tag-style logging shared by the bot modules."""

import threading
import time
from pathlib import Path

_log_file: Path | None = None
_log_lock = threading.Lock()


def set_log_file(path: str | Path | None):
    """Also append every log line to ``path`` (None turns it off)."""
    global _log_file
    _log_file = Path(path) if path else None


def log(tag: str, msg: str, **kwargs):
    """Simple logging with timestamp."""
    ts = time.strftime("%H:%M:%S")
    extras = " ".join(f"{k}={v}" for k, v in kwargs.items())
    line = f"[{ts}] [{tag}] {msg} {extras}".strip()
    print(line)

    if _log_file is not None:
        with _log_lock:
            with _log_file.open("a", encoding="utf-8") as fh:
                fh.write(f"{time.strftime('%Y-%m-%d')} {line}\n")
