import logging
import os

from src.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when the environment can't run the app."""


def missing_env(rules: Rules) -> list[str]:
    return [name for name in rules.ops.required_env if not os.environ.get(name)]


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.

    Raises:
        ConfigurationError: If a required environment variable is unset
    """
    missing = missing_env(rules)
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )
    logger.info("Configuration validated")
