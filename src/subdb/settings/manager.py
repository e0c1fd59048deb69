import json
import os
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from subdb.exceptions import SettingsError
from subdb.settings.models import SubDBSettings


def check_environment(settings: dict, prefix: str = "") -> dict:
    """Override flat settings values with non-empty `<PREFIX>_<KEY>` environment variables."""

    checked_settings = {}
    for key, value in settings.items():
        new_value = os.getenv(f"{prefix}_{key}".upper())
        if not new_value:
            checked_settings[key] = value
        elif isinstance(value, bool):
            checked_settings[key] = new_value.lower() == "true" or new_value == "1"
        elif isinstance(value, int):
            checked_settings[key] = int(new_value)
        elif isinstance(value, float):
            checked_settings[key] = float(new_value)
        elif isinstance(value, list):
            checked_settings[key] = json.loads(new_value)
        else:
            checked_settings[key] = new_value
    return checked_settings


def load_settings(
    settings_file: str | Path | None = None, prefix: str = "SUBDB"
) -> SubDBSettings:
    """
    Build validated settings from defaults, an optional JSON file and the environment.

    Environment variables win over the file, the file wins over defaults.

    Raises:
        SettingsError: If the merged settings fail validation.
        json.JSONDecodeError: If the settings file is not valid JSON.
        FileNotFoundError: If the settings file does not exist.
    """

    settings_dict = json.loads(SubDBSettings().model_dump_json())

    try:
        if settings_file:
            with open(settings_file, "r", encoding="utf-8") as file:
                settings_dict.update(json.loads(file.read()))
        settings_dict = check_environment(settings_dict, prefix)
        return SubDBSettings.model_validate(settings_dict)
    except ValidationError as e:
        formatted_error = format_validation_error(e)
        logger.error(f"Settings validation failed:\n{formatted_error}")
        raise SettingsError(formatted_error) from e
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing settings: {e}")
        raise
    except ValueError as e:
        # int()/float() coercion of an environment override
        logger.error(f"Invalid environment override: {e}")
        raise SettingsError(str(e)) from e
    except FileNotFoundError:
        logger.warning(f"Error loading settings: {settings_file} does not exist")
        raise


def format_validation_error(e: ValidationError) -> str:
    """Format validation errors in a user-friendly way"""
    messages = []
    for error in e.errors():
        field = ".".join(str(x) for x in error["loc"])
        message = error.get("msg")
        messages.append(f"• {field}: {message}")
    return "\n".join(messages)
