"""Logging setup for the API and the report worker."""
from __future__ import annotations

import logging
import logging.config
from pathlib import Path

import yaml

from cafeteria_survey.core.config import get_settings

DEFAULT_LOGGING_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"


def configure_logging(config_path: str | Path | None = None) -> None:
    """Apply the YAML ``dictConfig`` at ``config_path``.

    Falls back to ``Settings.logging_config``, then ``configs/logging.yaml``;
    when none of them exists a plain INFO ``basicConfig`` is used.
    """
    path = Path(config_path or get_settings().logging_config or DEFAULT_LOGGING_CONFIG)
    if not path.is_file():
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(__name__).warning("logging config not found", extra={"path": str(path)})
        return
    with path.open("r", encoding="utf-8") as config_file:
        logging.config.dictConfig(yaml.safe_load(config_file))
