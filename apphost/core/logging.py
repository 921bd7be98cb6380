import re
import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[app]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def log_file_pattern(app_name: str) -> str:
    """Rotating sink filename for ``app_name``, e.g. ``"my_app_{time}.log"``."""
    slug = re.sub(r"[^a-z0-9]+", "_", app_name.lower()).strip("_") or "apphost"
    return f"{slug}_{{time}}.log"


def setup_logging(debug_mode: bool = True, log_dir: str = "logs", app_name: str = "App Host") -> Path:
    """
    Configures Loguru for the host process.

    Args:
        debug_mode: DEBUG on the console when True, INFO otherwise
            (``general.debug_mode``)
        log_dir: Directory for the rotating file sink (``general.log_dir``),
            created if missing
        app_name: Tags every record and names the log file
            (``general.application_name``)

    Returns:
        Path pattern of the file sink
    """
    logger.remove()
    logger.configure(extra={"app": app_name})

    level = "DEBUG" if debug_mode else "INFO"
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, diagnose=debug_mode)

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    sink = directory / log_file_pattern(app_name)
    logger.add(str(sink), rotation="10 MB", retention="1 week", level="DEBUG", encoding="utf-8")

    logger.info(f"Logging initialized for {app_name} ({level}, files in {directory})")
    return sink
