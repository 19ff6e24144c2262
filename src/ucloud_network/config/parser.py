"""Provider configuration loading from YAML and environment variables."""

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from .models import ProviderConfig

# Environment variables overlaid on top of the YAML file
ENV_VARS = {
    "UCLOUD_PUBLIC_KEY": "public_key",
    "UCLOUD_PRIVATE_KEY": "private_key",
    "UCLOUD_REGION": "region",
    "UCLOUD_PROJECT_ID": "project_id",
    "UCLOUD_API_BASE_URL": "base_url",
}


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)

    def __str__(self) -> str:
        """Format validation errors for display."""
        if not self.errors:
            return self.message

        error_lines = [self.message, ""]
        for error in self.errors:
            location = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            error_lines.append(f"  - {location}: {msg}")

        return "\n".join(error_lines)


def read_config_file(config_path: Optional[str]) -> Dict:
    """Read the ``provider`` section of a YAML file.

    A missing ``config_path`` yields an empty mapping; a path that is given
    but does not exist is an error.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigValidationError: If the file is not valid YAML
    """
    if not config_path:
        return {}

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Failed to parse YAML: {e}")

    if not isinstance(data, dict):
        raise ConfigValidationError("Configuration file must contain a mapping")

    section = data.get("provider", data)
    if not isinstance(section, dict):
        raise ConfigValidationError(
            "Configuration validation failed",
            [{"loc": ["provider"], "msg": "must be a mapping"}],
        )
    return section


def load_provider_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides,
) -> ProviderConfig:
    """Build a validated ProviderConfig.

    Values are layered in order: YAML file, environment variables, then
    explicit keyword overrides (``None`` overrides are ignored).

    Args:
        config_path: Optional path to a YAML file
        environ: Environment mapping (defaults to ``os.environ``)
        **overrides: Field values taking precedence over everything else

    Returns:
        Validated provider configuration

    Raises:
        ConfigValidationError: If the merged settings are invalid
    """
    environ = os.environ if environ is None else environ

    data = dict(read_config_file(config_path))
    for env_name, field in ENV_VARS.items():
        if environ.get(env_name):
            data[field] = environ[env_name]
    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ProviderConfig(**data)
    except ValidationError as e:
        errors = [
            {"loc": ["provider"] + list(error["loc"]), "msg": error["msg"]}
            for error in e.errors()
        ]
        raise ConfigValidationError(
            f"Configuration validation failed with {len(errors)} error(s)", errors
        )
