import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from cactus.common.setup import PATHS
from datetime import datetime

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Adds the handler under a stable name, unless a handler of that name is already attached. Keeps repeated
# get_logger() calls from stacking duplicate handlers.
def _attach(logger: logging.Logger, handler: logging.Handler, handler_name: str, level, fmt) -> bool:
    if any(h.get_name() == handler_name for h in logger.handlers):
        handler.close()
        return False
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.set_name(handler_name)
    logger.addHandler(handler)
    return True

def get_logger(
        name = "cactus",
        level = logging.INFO,
        log_dir: Path | None = None,
        max_bytes = 5 * 1024 * 1024,
        backup_count = 5,
        console = False,
        historical_debugs: int = 10
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    log_dir = log_dir or PATHS.logs
    log_dir.mkdir(parents=True,exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT,LOG_DATE_FORMAT)

    # Persistent, size-rotated log that survives across runs
    if not any(h.get_name() == f"{name}:persistent" for h in logger.handlers):
        _attach(logger,
                RotatingFileHandler(log_dir / f"{name}.log", maxBytes=max_bytes, backupCount=backup_count,
                                    encoding="utf-8"),
                f"{name}:persistent", level, fmt)

    # latest.log only ever holds the current run
    if not any(h.get_name() == f"{name}:latest" for h in logger.handlers):
        _attach(logger, logging.FileHandler(log_dir / "latest.log", mode="w", encoding="utf-8"),
                f"{name}:latest", level, fmt)

    # One full DEBUG log per run, the oldest runs past `historical_debugs` get pruned
    debug_handler_name = f"{name}:historical_debug"
    if historical_debugs > 0 and not any(h.get_name() == debug_handler_name for h in logger.handlers):
        debug_dir = log_dir / "debug"
        debug_dir.mkdir(parents=True,exist_ok=True)
        run_path = debug_dir / f"{name}_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"
        _attach(logger, logging.FileHandler(run_path, encoding="utf-8"), debug_handler_name, logging.DEBUG, fmt)

        runs = sorted(debug_dir.glob(f"{name}_*.log"),key=lambda p: p.stat().st_mtime,reverse=True)
        for run in runs[historical_debugs:]:
            try: run.unlink()
            except OSError: pass

    if console:
        _attach(logger, logging.StreamHandler(), f"{name}:console", level, fmt)

    return logger

# CACTUS_LOG_LEVEL=WARNING etc. quiets the file logs, CACTUS_LOG_CONSOLE=1 mirrors them to stderr.
_LEVEL = logging.getLevelName(os.getenv("CACTUS_LOG_LEVEL", "DEBUG").upper())
log = get_logger(level=_LEVEL if isinstance(_LEVEL, int) else logging.DEBUG,
                 console=os.getenv("CACTUS_LOG_CONSOLE") == "1",
                 historical_debugs=10)
log.info("=== INITIALIZED NEW SESSION ===")
