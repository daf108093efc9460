"""
Configuration repository for loading and saving config files.

This module provides the infrastructure layer for configuration persistence.
It handles file I/O operations and basic validation.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from winpush.domain.settings import DeploySettings

logger = logging.getLogger(__name__)

SETTINGS_FILE = "deploy_settings"
CREDENTIALS_DIR = "credentials"

# Strings first so "//" inside a value (UNC paths, URLs) is left alone
_JSONC_TOKEN = re.compile(r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/', re.DOTALL)


def _strip_comments(jsonc_content: str) -> str:
    """Strip // and /* */ comments from JSONC content."""
    return _JSONC_TOKEN.sub(
        lambda m: m.group(0) if m.group(0).startswith('"') else "",
        jsonc_content,
    )


class ConfigRepository:
    """
    Repository for configuration file operations.

    Handles loading and saving of configuration files with support for
    JSON and JSONC formats.
    """

    def __init__(self, config_dir: Path):
        self.config_dir = config_dir

    def _candidates(self, filename: str, allow_jsonc: bool = True) -> List[Path]:
        names = [f"{filename}.json"]
        if allow_jsonc:
            names.append(f"{filename}.jsonc")
        return [self.config_dir / name for name in names]

    def exists(self, filename: str) -> bool:
        """Whether filename.json or filename.jsonc exists."""
        return any(path.exists() for path in self._candidates(filename))

    def load_json_file(self, filename: str, allow_jsonc: bool = True) -> Dict[str, Any]:
        """
        Load filename.json, or filename.jsonc (comments allowed) when absent.

        Raises:
            FileNotFoundError: If neither file exists
            ValueError: If the file cannot be parsed
        """
        for path in self._candidates(filename, allow_jsonc):
            if not path.exists():
                continue
            content = path.read_text(encoding="utf-8")
            if path.suffix == ".jsonc":
                content = _strip_comments(content)
            try:
                return json.loads(content)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {path}: {e}") from e

        raise FileNotFoundError(
            f"Config file '{filename}.json' or '{filename}.jsonc' not found in {self.config_dir}"
        )

    def save_json_file(self, filename: str, data: Dict[str, Any]) -> Path:
        """Write data as indented UTF-8 JSON, creating parent directories."""
        filepath = self.config_dir / f"{filename}.json"
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

        logger.info("Saved config file: %s", filepath)
        return filepath

    def load_deploy_settings(self) -> DeploySettings:
        """
        Load deployment settings, falling back to defaults when absent.

        Raises:
            ValueError: If the file exists but cannot be parsed or validated
        """
        if not self.exists(SETTINGS_FILE):
            logger.debug("No %s file in %s, using defaults", SETTINGS_FILE, self.config_dir)
            return DeploySettings()

        data = self.load_json_file(SETTINGS_FILE)
        if not isinstance(data, dict):
            raise ValueError(f"Invalid deployment settings: expected an object, got {type(data).__name__}")
        try:
            return DeploySettings.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid deployment settings: {e}") from e

    def save_deploy_settings(self, settings: DeploySettings) -> Path:
        """Write settings as JSON."""
        return self.save_json_file(SETTINGS_FILE, settings.model_dump(mode="json"))

    def list_credential_refs(self) -> List[str]:
        """Reference names of all stored credentials."""
        cred_dir = self.config_dir / CREDENTIALS_DIR
        if not cred_dir.exists():
            return []
        return sorted(path.stem for path in cred_dir.glob("*.json"))
