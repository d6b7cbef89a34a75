# config/resolvers.py
from pathlib import Path
from typing import Optional

from platformdirs import user_log_dir

APP = "moodgauge"

def default_log_dir() -> Path:
    return Path(user_log_dir(APP))

def resolve_log_dir(log_dir: Optional[str | Path]) -> Path:
    """
    Decide where this run writes its log file:
    - explicit path: used as given (must not point at an existing file)
    - nothing: the per-user log directory for the application
    """
    if not log_dir:
        return default_log_dir()
    p = Path(log_dir).expanduser()
    if p.exists() and not p.is_dir():
        raise ValueError(f"log_dir points at a file, not a directory: {p}")
    return p
