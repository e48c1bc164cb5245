"""
Application configuration for the security rules client.

Supplies the project ID and the optional default Cloud Storage bucket.
Values come from explicit arguments, the FIREBASE_CONFIG environment
variable (inline JSON or a path to a JSON file), GOOGLE_CLOUD_PROJECT /
GCLOUD_PROJECT, or a YAML file.
"""

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from security_rules.core.errors import InvalidArgumentError
from security_rules.utils.validation import validate_bucket_name, validate_project_id

FIREBASE_CONFIG_VAR = "FIREBASE_CONFIG"
PROJECT_ID_VARS = ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT")


class AppConfig(BaseModel):
    """
    Read-only client configuration.

    Attributes:
        project_id: Project owning the rulesets and releases
        storage_bucket: Default bucket for storage releases (optional)
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "project_id": "my-project",
                "storage_bucket": "my-project.appspot.com",
            }
        },
    )

    project_id: str
    storage_bucket: str | None = None

    @field_validator("project_id", mode="before")
    @classmethod
    def check_project_id(cls, v):
        return validate_project_id(v)

    @field_validator("storage_bucket", mode="before")
    @classmethod
    def check_storage_bucket(cls, v):
        if v is None or v == "":
            return None
        return validate_bucket_name(v, field_name="storage_bucket")

    @classmethod
    def build(cls, **values: Any) -> "AppConfig":
        """
        Validate configuration values, raising InvalidArgumentError on failure.
        """
        try:
            return cls(**values)
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_env(
        cls,
        project_id: str | None = None,
        storage_bucket: str | None = None,
        environ: dict[str, str] | None = None,
    ) -> "AppConfig":
        """
        Build configuration with explicit values taking precedence over the environment.

        Args:
            project_id: Explicit project ID
            storage_bucket: Explicit default bucket
            environ: Environment mapping (os.environ by default)

        Returns:
            Validated AppConfig

        Raises:
            InvalidArgumentError: If no project ID can be determined or
                FIREBASE_CONFIG cannot be parsed
        """
        env = os.environ if environ is None else environ
        firebase_config = _read_firebase_config(env.get(FIREBASE_CONFIG_VAR))

        if project_id is None:
            project_id = firebase_config.get("projectId")
        if project_id is None:
            project_id = next((env[var] for var in PROJECT_ID_VARS if env.get(var)), None)
        if storage_bucket is None:
            storage_bucket = firebase_config.get("storageBucket")

        return cls.build(project_id=project_id, storage_bucket=storage_bucket)


def _read_firebase_config(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}

    try:
        if raw.lstrip().startswith("{"):
            config = json.loads(raw)
        else:
            config = json.loads(Path(raw).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise InvalidArgumentError(f"Failed to parse {FIREBASE_CONFIG_VAR}: {e}") from e

    if not isinstance(config, dict):
        raise InvalidArgumentError(f"{FIREBASE_CONFIG_VAR} must hold a JSON object")
    return config


def load_config(config_path: str | Path) -> AppConfig:
    """
    Load client configuration from a YAML file.

    Expected YAML format:
    ```yaml
    project_id: my-project
    storage_bucket: my-project.appspot.com
    ```

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidArgumentError: If the file content is invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidArgumentError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidArgumentError("Configuration file must contain a mapping")

    return AppConfig.build(
        project_id=data.get("project_id"),
        storage_bucket=data.get("storage_bucket"),
    )
