"""Log-file setup for a process whose terminal belongs to the TUI.

Nothing may be printed to stdout/stderr while the alternate screen is active,
so records go to a file under the platform log directory, or nowhere.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from platformdirs import user_log_dir

APP_NAME = "gitpeek"
LOG_ENV_VAR = "GITPEEK_LOG"
DEFAULT_LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(APP_NAME)


def configure_logging(debug: bool = False, path: Path | None = None) -> Path | None:
    """Attach the package log handler and return the log file path, if any.

    Logging is enabled by ``debug`` or by setting ``GITPEEK_LOG`` (to ``1`` for
    the default location, or to an explicit file path).
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    env_value = os.environ.get(LOG_ENV_VAR, "").strip()
    if path is None and env_value and env_value not in {"0", "1", "true"}:
        path = Path(env_value).expanduser()
    if not debug and path is None and env_value not in {"1", "true"}:
        logger.addHandler(logging.NullHandler())
        return None

    target = path if path is not None else DEFAULT_LOG_PATH
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target, mode="a", encoding="utf-8")
    except OSError:
        logger.addHandler(logging.NullHandler())
        return None
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)
    return target
