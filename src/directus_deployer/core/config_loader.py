"""
Configuration loading utilities.

This module builds the StackConfig from a project's configuration file and
environment overrides, and loads optional engine credentials.

Resolution Order (later wins):
    1. Built-in defaults (constants.CONFIG_DEFAULTS)
    2. config.json - flat object keyed by configuration key names
    3. Environment - DEPLOY_<KEY>, key upper-cased with ':' replaced by '_'
       (e.g. DEPLOY_DB_STORAGEGB=64)

All validation happens here, before the declaration is built and before
any engine command runs.

Usage:
    from directus_deployer.core.config_loader import load_stack_config

    config = load_stack_config(project_path=Path("./stacks/prod"))
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .. import constants as CONSTANTS
from .context import StackConfig
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _load_json_file(file_path: Path, required: bool = True) -> Dict[str, Any]:
    """
    Load a JSON file and return its contents as a dictionary.

    Args:
        file_path: Path to the JSON file
        required: If True, raise error when file is missing. If False, return empty dict.

    Returns:
        Parsed JSON content as dictionary

    Raises:
        ConfigurationError: If file is missing (when required), has invalid
            JSON, or does not contain a JSON object
    """
    if not file_path.exists():
        if required:
            raise ConfigurationError(
                f"Required configuration file not found: {file_path.name}",
                config_file=str(file_path)
            )
        return {}

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            content = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in configuration file: {e}",
            config_file=str(file_path)
        )

    if not isinstance(content, dict):
        raise ConfigurationError(
            "Configuration file must contain a JSON object",
            config_file=str(file_path)
        )
    return content


def env_var_for_key(key: str) -> str:
    """
    Environment variable that overrides a configuration key.

    Example:
        >>> env_var_for_key("db:storageGB")
        "DEPLOY_DB_STORAGEGB"
    """
    return CONSTANTS.ENV_OVERRIDE_PREFIX + key.replace(":", "_").upper()


def _coerce_value(
    key: str,
    value: Any,
    config_file: Optional[str] = None,
    source: Optional[str] = None
) -> Any:
    """
    Validate a raw configuration value and convert it to its declared type.

    Numeric keys accept integers, integral floats and numeric strings
    (config stores often keep everything as strings). String keys accept
    non-empty strings only.

    Raises:
        ConfigurationError: Naming the key and where the value came from
    """
    if key in CONSTANTS.NUMBER_CONFIG_KEYS:
        number = None
        # bool is an int subclass; true/false are never sizes
        if isinstance(value, bool):
            pass
        elif isinstance(value, int):
            number = value
        elif isinstance(value, float) and value.is_integer():
            number = int(value)
        elif isinstance(value, str):
            try:
                number = int(value.strip())
            except ValueError:
                number = None

        if number is None or number <= 0:
            raise ConfigurationError(
                f"Invalid value for '{key}': expected a positive integer, got {value!r}",
                config_file=config_file,
                source=source,
                key=key
            )
        return number

    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            f"Invalid value for '{key}': expected a non-empty string, got {value!r}",
            config_file=config_file,
            source=source,
            key=key
        )
    return value.strip()


def _read_file_values(config_file: Path) -> Dict[str, Any]:
    raw = _load_json_file(config_file, required=False)
    known = set(CONSTANTS.CONFIG_DEFAULTS)

    values = {}
    for key, value in raw.items():
        if key not in known:
            raise ConfigurationError(
                f"Unknown configuration key '{key}'. Known keys: {sorted(known)}",
                config_file=str(config_file),
                key=key
            )
        values[key] = _coerce_value(key, value, config_file=str(config_file))
    return values


def _read_env_values(environ: Mapping[str, str]) -> Dict[str, Any]:
    values = {}
    for key in CONSTANTS.CONFIG_DEFAULTS:
        env_name = env_var_for_key(key)
        if env_name in environ:
            values[key] = _coerce_value(key, environ[env_name], source=f"environment variable {env_name}")
            logger.debug(f"Config '{key}' overridden by {env_name}")
    return values


def load_stack_config(
    project_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None
) -> StackConfig:
    """
    Load the StackConfig for a project.

    Args:
        project_path: Directory that may contain config.json. If None, only
            defaults and environment overrides apply.
        environ: Environment mapping (defaults to os.environ)

    Returns:
        StackConfig with every key resolved

    Raises:
        ConfigurationError: If config.json is malformed or a value is invalid

    Example:
        config = load_stack_config(Path("./stacks/prod"))
        print(config.db_sku)  # "Standard_B1ms"
    """
    if environ is None:
        environ = os.environ

    values: Dict[str, Any] = {}
    if project_path is not None:
        values.update(_read_file_values(Path(project_path) / CONSTANTS.CONFIG_FILE))
    values.update(_read_env_values(environ))

    config = StackConfig.from_values(values)
    logger.debug(f"Loaded stack config: {config}")
    return config


def load_credentials(project_path: Path) -> Dict[str, dict]:
    """
    Load engine credentials for the project.

    Credentials are optional: without a credentials file the engine falls
    back to whatever the environment provides (az login, ARM_* variables).
    A file that exists must contain every required field.

    Args:
        project_path: Path to the project directory

    Returns:
        Dictionary mapping provider names to their credentials
        e.g., {"azure": {"azure_client_id": "...", ...}}

    Raises:
        ConfigurationError: If a credentials file is incomplete or invalid
    """
    credentials = {}

    creds_file = Path(project_path) / CONSTANTS.CONFIG_CREDENTIALS_AZURE_FILE
    azure_creds = _load_json_file(creds_file, required=False)
    if azure_creds:
        for field in CONSTANTS.REQUIRED_CREDENTIALS_FIELDS["azure"]:
            if not azure_creds.get(field):
                raise ConfigurationError(
                    f"Missing required Azure credential: {field}",
                    config_file=str(creds_file),
                    key=field
                )
        credentials["azure"] = azure_creds

    return credentials


def credentials_to_env(credentials: Dict[str, dict]) -> Dict[str, str]:
    """
    Map loaded credentials to the environment variables the engine reads.

    Example:
        >>> credentials_to_env({"azure": {"azure_client_id": "abc", ...}})
        {"ARM_CLIENT_ID": "abc", ...}
    """
    env = {}
    azure = credentials.get("azure", {})
    for field, env_name in CONSTANTS.AZURE_CREDENTIALS_ENV.items():
        if azure.get(field):
            env[env_name] = str(azure[field])
    return env
