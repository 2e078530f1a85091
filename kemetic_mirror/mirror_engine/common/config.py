# kemetic_mirror/mirror_engine/common/config.py
"""Configuration loading and logging setup shared by the entry point and tests."""

import logging
import os

import yaml

from .enums import LogLevel
from .errors import ConfigError

REQUIRED_SECTIONS = ("camera", "landmarks", "render", "capture")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def load_config(path: str) -> dict:
    """Reads the YAML configuration and checks that every component section exists."""
    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file '{path}' not found.") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration file '{path}'. {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Configuration file '{path}' must contain a mapping.")
    missing = [name for name in REQUIRED_SECTIONS if not isinstance(config.get(name), dict)]
    if missing:
        raise ConfigError(f"Missing configuration section(s): {', '.join(missing)}")

    config.setdefault("oracle", {})
    config.setdefault("logging", {})
    return config


def configure_logging(level=LogLevel.INFO) -> None:
    """Sets up root logging once and mutes native MediaPipe/TensorFlow output."""
    level = LogLevel(str(level).upper()) if not isinstance(level, LogLevel) else level
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")
    os.environ.setdefault("GLOG_minloglevel", "2")
    logging.basicConfig(level=getattr(logging, level.value), format=LOG_FORMAT)
