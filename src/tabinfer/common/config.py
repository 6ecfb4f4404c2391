import logging
import os
import re
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from tabinfer.core.config_models import Catalog, DetectionSettings
from tabinfer.common.exceptions import (
    ConfigurationError,
    FileReadError,
    FileFormatError,
    EnvironmentSetupError,
)
from tabinfer.common.utils import error_handler

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "tabinfer.yml"


class Config:
    """
    Loads ``tabinfer.yml`` and exposes it as typed detection settings.

    The file is looked up at the explicit path when given, otherwise in
    ``$TABINFER_HOME`` and finally the working directory. A missing file
    yields the default settings.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        if config_path is None:
            config_path = os.path.join(self.get_tabinfer_home(), CONFIG_FILENAME)
            required = False
        else:
            required = True
        self.config_path = config_path
        self.raw: Dict[str, Any] = self._load_yaml(config_path, required=required)
        self._settings: Optional[DetectionSettings] = None

    @staticmethod
    @error_handler(log=True, raise_error=True)
    def get_tabinfer_home() -> str:
        """
        Return the tabinfer home directory.

        Uses 'TABINFER_HOME' when set, otherwise the current working directory.
        """
        home = os.environ.get("TABINFER_HOME")
        if not home:
            home = os.getcwd()
        if not os.path.exists(home):
            raise EnvironmentSetupError(
                message="TABINFER_HOME directory not found",
                details={"path": home},
            )
        return home

    @staticmethod
    def _load_yaml(file_path: str, *, required: bool) -> Dict[str, Any]:
        if not os.path.exists(file_path):
            if required:
                raise FileReadError(
                    file_path=file_path,
                    message="Configuration file not found",
                )
            logger.debug("No configuration at %s, using defaults", file_path)
            return {}

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                raw_content = f.read()
        except OSError as e:
            raise FileReadError(
                file_path=file_path,
                message="Failed to access config file",
                details={"error": str(e)},
            )

        resolved_content = Config._substitute_env_variables(
            raw_content, source=file_path
        )
        try:
            data = yaml.safe_load(resolved_content)
        except yaml.YAMLError as e:
            raise FileFormatError(
                file_path=file_path,
                message="Invalid YAML format",
                details={"error": str(e)},
            )
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise FileFormatError(
                file_path=file_path,
                message="Configuration root must be a mapping",
                details={"type": type(data).__name__},
            )
        return data

    @staticmethod
    def _substitute_env_variables(content: str, *, source: str) -> str:
        """Replace ${VAR} or ${VAR:-default} placeholders with environment values."""

        if "${" not in content:
            return content

        pattern = re.compile(r"\$\{([A-Z0-9_]+)(?::-(.*?))?\}")

        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise EnvironmentSetupError(
                message="Missing environment variable",
                details={"variable": var_name, "file": source},
            )

        return pattern.sub(replace, content)

    @property
    def settings(self) -> DetectionSettings:
        """
        Typed detection settings.

        Raises:
            ConfigurationError: If a value in the file fails validation
        """
        if self._settings is None:
            try:
                self._settings = DetectionSettings.from_dict(self.raw)
            except (PydanticValidationError, ValueError) as e:
                raise ConfigurationError(
                    config_key="settings",
                    message="Invalid detection settings",
                    details={"file": self.config_path, "error": str(e)},
                )
        return self._settings


@error_handler(log=True, raise_error=True)
def load_catalog(file_path: str) -> Catalog:
    """Load a YAML/JSON catalog of destination datasets."""
    data = Config._load_yaml(file_path, required=True)
    try:
        return Catalog.from_dict(data)
    except (PydanticValidationError, ValueError) as e:
        raise ConfigurationError(
            config_key="datasets",
            message="Invalid dataset catalog",
            details={"file": file_path, "error": str(e)},
        )
