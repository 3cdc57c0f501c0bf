"""Configuration classes keyed by environment name.

``FLASK_ENV`` picks the class when no name is passed; an unknown name is
an error rather than a silent fall back to development settings.
"""
import os
from typing import Type

from .base import BaseConfig
from .development import DevelopmentConfig
from .production import ProductionConfig
from .testing import TestingConfig

config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}

def get_config(config_name: str = None) -> Type[BaseConfig]:
    """Return the configuration class for ``config_name`` or ``FLASK_ENV``."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    try:
        return config_map[config_name]
    except KeyError:
        raise ValueError(
            f"Unknown configuration '{config_name}'; "
            f"expected one of: {', '.join(sorted(config_map))}"
        ) from None
