"""
Logging setup.
"""

from __future__ import annotations

import logging
import os

import onnxruntime as ort

# onnxruntime severities: 0 verbose, 1 info, 2 warning, 3 error, 4 fatal
_ORT_SEVERITY = {
    "DEBUG": 1,
    "INFO": 2,
    "WARNING": 2,
    "ERROR": 3,
    "CRITICAL": 4,
}


def setup_logging(log_path: str, log_level: str) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )
    ort.set_default_logger_severity(_ORT_SEVERITY.get(log_level, 2))
