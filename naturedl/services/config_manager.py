import json
import os
import yaml
from pathlib import Path
from string import Template
from typing import List, Optional
from dotenv import load_dotenv
import structlog
from pydantic import ValidationError

from naturedl.models.catalog import Journal
from naturedl.models.config import AppConfig

logger = structlog.get_logger()

USERNAME_ENV = "NATURE_USERNAME"
PASSWORD_ENV = "NATURE_PASSWORD"


class ConfigValidationError(Exception):
    """Configuration validation failed"""

    pass


class BatchLoadError(Exception):
    """Batch file could not be read or validated"""

    pass


class ConfigManager:
    """Loads application configuration and download batches"""

    def __init__(
        self,
        config_path: Optional[str] = None,
        require_file: bool = False,
    ):
        self.config_path = Path(config_path) if config_path else None
        self.require_file = require_file
        self.env_loaded = False
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load and validate configuration

        Defaults are used when no config file is given (or it does not
        exist and require_file is False). Credentials from the environment
        override the ones in the file.
        """
        if self._config:
            return self._config

        # 1. Load environment
        if not self.env_loaded:
            load_dotenv()
            self.env_loaded = True

        # 2. Read YAML
        config_data = self._read_config_file()

        # 3. Overlay credentials from environment
        credentials = config_data.get("credentials") or {}
        if not isinstance(credentials, dict):
            raise ConfigValidationError("credentials must be a mapping")
        config_data["credentials"] = credentials
        # Unset variables survive safe_substitute as literal "${VAR}"
        for key in ("username", "password"):
            value = credentials.get(key)
            if isinstance(value, str) and value.startswith("${"):
                credentials[key] = None
        if os.environ.get(USERNAME_ENV):
            credentials["username"] = os.environ[USERNAME_ENV]
        if os.environ.get(PASSWORD_ENV):
            credentials["password"] = os.environ[PASSWORD_ENV]

        # 4. Validate with Pydantic
        try:
            self._config = AppConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            path=str(self.config_path) if self.config_path else None,
            outdir=self._config.download.outdir,
        )
        return self._config

    def _read_config_file(self) -> dict:
        if self.config_path is None:
            return {}

        if not self.config_path.exists():
            if self.require_file:
                raise FileNotFoundError(
                    f"Configuration file not found: {self.config_path}"
                )
            logger.debug("config_file_missing", path=str(self.config_path))
            return {}

        try:
            raw_content = self.config_path.read_text()
        except Exception as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        try:
            # Use safe_substitute to allow ${VAR} syntax
            template = Template(raw_content)
            substituted_content = template.safe_substitute(os.environ)
            config_data = yaml.safe_load(substituted_content)
        except Exception as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )

        if config_data is None:
            return {}
        if not isinstance(config_data, dict):
            raise ConfigValidationError("Configuration root must be a mapping")
        return config_data

    @staticmethod
    def load_batch(batch_path: Path) -> List[Journal]:
        """Load a batch of journals written by `naturedl scrape journal`

        The file holds either a single journal object or a list of them.
        Journals carrying a scrape error are skipped with a warning.
        Journals without a date are kept and saved under an "undated" folder.
        """
        if not batch_path.exists():
            raise FileNotFoundError(f"Batch file not found: {batch_path}")

        try:
            with open(batch_path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise BatchLoadError(f"Failed to read batch file: {e}")

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise BatchLoadError("Batch file must contain a list of journals")

        journals: List[Journal] = []
        for entry in data:
            try:
                journal = Journal(**entry)
            except (TypeError, ValidationError) as e:
                raise BatchLoadError(f"Invalid journal in batch: {e}")
            if journal.error:
                logger.warning(
                    "journal_skipped", journal=journal.id, error=journal.error
                )
                continue
            if journal.date is None:
                logger.warning(
                    "journal_undated", journal=journal.id, folder=journal.folder
                )
            journals.append(journal)

        logger.info("batch_loaded", path=str(batch_path), journals=len(journals))
        return journals
