"""
Logging setup.

Records carry the thread name so work on the sample queue, the tracker
thread and the main loop can be told apart.
"""

from __future__ import annotations

import logging
import os

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "multipart")


def setup_logging(log_path: str, log_level: str) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(threadName)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
