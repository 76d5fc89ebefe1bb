# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Centralised logging configuration.

All log settings (levels, rotation, format …) live in  etc/logging.conf.
``configure_logging`` resolves the log-file path, patches it into the config
text, and applies it via the standard-library fileConfig loader.  It is
called once by ``create_app()``; importing this module has no side effects.

Import the logger anywhere:
    from rasta.core.logger import logger
"""

import configparser
import logging
import logging.config
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
# project root: backend/rasta/core/logger.py  →  ../../../
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
_LOG_DIR      = _PROJECT_ROOT / "log"
_LOG_FILE     = _LOG_DIR / "app.log"
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"

logger = logging.getLogger("rasta")


def configure_logging(conf_path: Path = _LOGGING_CONF) -> None:
    """
    Apply ``etc/logging.conf``.  When the file is missing (e.g. an installed
    wheel without the etc/ tree) fall back to a plain stderr handler.
    """
    if not conf_path.is_file():
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        )
        return

    # Ensure the log/ directory exists before the handler tries to open the file
    _LOG_DIR.mkdir(exist_ok=True)

    # logging.conf uses %(log_file)s as a placeholder.  We read the raw text,
    # replace it with the real absolute path, then feed the result to
    # fileConfig via a ConfigParser-compatible object.
    raw = conf_path.read_text(encoding="utf-8")
    raw = raw.replace("%(log_file)s", str(_LOG_FILE))

    # RawConfigParser is required: the logging format strings contain
    # %(asctime)s etc. which ConfigParser would try to interpolate.
    parser = configparser.RawConfigParser()
    parser.read_string(raw)

    logging.config.fileConfig(parser, disable_existing_loggers=False)
