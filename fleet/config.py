"""Runtime settings read from environment variables, and logging setup."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class Settings:
    data_file: Path = Path("fleet.yaml")
    seed_sample_data: bool = False
    validation_workers: int = 1
    log_level: str = "INFO"


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from the environment.

    - FLEET_DATA_FILE: YAML data file (default fleet.yaml)
    - FLEET_SEED_SAMPLE_DATA: seed an empty store on web start-up
    - FLEET_VALIDATION_WORKERS: threads used by a fleet-wide validation
    - FLEET_LOG_LEVEL: logging level name
    """
    if environ is None:
        environ = os.environ
    return Settings(
        data_file=Path(environ.get("FLEET_DATA_FILE") or "fleet.yaml"),
        seed_sample_data=environ.get("FLEET_SEED_SAMPLE_DATA", "").lower() in TRUE_VALUES,
        validation_workers=_int_setting(environ, "FLEET_VALIDATION_WORKERS", 1),
        log_level=(environ.get("FLEET_LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Send fleet log records to stderr with timestamps."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
