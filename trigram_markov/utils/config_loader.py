"""
Configuration loading for the text generation pipeline.

Settings come from YAML files in the project's `configs/` directory. An
environment specific `generator_<environment>.yaml` wins over the shared
`generator.yaml`; an explicit path wins over both. Missing keys fall back to
DEFAULT_CONFIG.

A relative `input` read from a configuration file is resolved against the
project root, so the bundled corpus is found from any working directory.
Paths given as overrides are used as they are.
"""

import os
import logging

import yaml

from trigram_markov.utils.loggers.json_logger import get_project_root

DEFAULT_CONFIG = {
    "num_words": 100,
    "input": os.path.join(get_project_root(), "text", "corpus.txt"),
    "output": "out.txt",
    "seed": None,
    "cpuprofile": None,
    "memprofile": None,
    "trace": False,
    "monitoring_interval": 5.0,
    "log_file": None,
    "console_json": True,
}


class ConfigError(ValueError):
    """Raised when a configuration file cannot be used."""


def get_config_dir():
    """Returns the directory holding the YAML configuration files."""
    return os.path.join(get_project_root(), "configs")


def _read_yaml(path):
    """Reads a YAML mapping; an empty file yields an empty dict."""
    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return config


def find_config_file(environment="development", config_dir=None):
    """
    Locates the configuration file for an environment.

    Returns:
        str or None: Path of the first existing candidate file
    """
    config_dir = config_dir or get_config_dir()
    candidates = [
        os.path.join(config_dir, f"generator_{environment}.yaml"),
        os.path.join(config_dir, "generator.yaml"),
    ]
    for path in candidates:
        if os.path.exists(path):
            return path
    return None


def load_config(environment="development", config_path=None, config_dir=None,
                overrides=None, logger=None):
    """
    Builds the effective pipeline configuration.

    Args:
        environment (str): Selects `generator_<environment>.yaml`
        config_path (str, optional): Explicit configuration file; must exist
        config_dir (str, optional): Directory searched when no explicit path is given
        overrides (dict, optional): Values that replace file settings, None values are ignored
        logger (Logger, optional): Logger for reporting where settings came from

    Returns:
        dict: Configuration with every key of DEFAULT_CONFIG present

    Raises:
        ConfigError: If the explicit file is missing or any file is malformed
    """
    logger = logger or logging.getLogger(__name__)
    config = dict(DEFAULT_CONFIG)

    if config_path is not None:
        if not os.path.exists(config_path):
            raise ConfigError(f"Config file not found: {config_path}")
        source = config_path
    else:
        source = find_config_file(environment, config_dir)

    if source is not None:
        file_config = _read_yaml(source)
        if file_config.get("input") and not os.path.isabs(file_config["input"]):
            file_config["input"] = os.path.join(get_project_root(), file_config["input"])
        config.update(file_config)
        logger.info(f"Loaded generator config from {source}")
    else:
        logger.info("No generator config found, using defaults")

    if overrides:
        config.update({k: v for k, v in overrides.items() if v is not None})

    return config
