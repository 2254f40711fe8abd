import logging
import os

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_LOCATION = "config.yaml"
DEFAULT_POLL_INTERVAL = 5
DEFAULT_WAIT_TIMEOUT = 600


def load_config(location=None) -> dict:
    """Read and parse the configuration file.

    The file is optional: every setting it holds has a default, and the credentials
    live in the environment anyway.

    Args:
        location (str): Path to the file. Defaults to the value of the
            EPHEMERAL_VERIFIER_CONFIG environment variable, or "config.yaml".

    Returns:
        The parsed configuration, or an empty dict if the file doesn't exist or is
        empty.
    """
    if location is None:
        location = os.getenv("EPHEMERAL_VERIFIER_CONFIG", DEFAULT_CONFIG_LOCATION)

    if not os.path.exists(location):
        logger.debug("No configuration file at %s, using defaults", location)
        return {}

    with open(location) as f:
        config = yaml.safe_load(f.read())

    return config or {}


def get_section(config, name) -> dict:
    """Return a section of the configuration, or an empty dict if it's absent."""
    return config.get(name) or {}
