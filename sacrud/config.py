# Configuration settings should be set in app.config
# The get_config function falls back to the SACRUD class defaults and the environment
import os
import logging
from flask import current_app
import sacrud
from typing import Any, Optional


def get_config(option: str, default: Optional[Any] = None) -> Any:
    """Retrieve a configuration parameter from the app
    :param option: configuration parameter
    :param default: value returned when the option isn't configured anywhere
    :return: configuration value
    """
    try:
        result = current_app.config[option]
    except (KeyError, RuntimeError):
        # RuntimeError: working outside of the application context
        result = getattr(sacrud.SACRUD, option, None)
        if result is None:
            result = os.environ.get(option, None)
    if result is None:
        return default
    return result


def get_int_config(option: str, default: int = 0) -> int:
    """
    :param option: configuration parameter
    :return: configuration value cast to int (env vars are strings)
    """
    value = get_config(option, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        sacrud.log.warning(f'Invalid integer configuration "{option}": {value}')
        return default


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether the app is in debug mode
    :rtype: Boolean
    """
    return sacrud.log.getEffectiveLevel() < logging.INFO
