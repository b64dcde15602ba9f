"""Settings — layered configuration for the sources manager."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from pydantic import BaseModel, Field

from sourcekeeper.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Settings field -> configuration key (config.json, .env, environment)
ENV_KEYS: dict[str, str] = {
    "data_dir": "SOURCEKEEPER_DATA_DIR",
    "repo_url": "TRANSACTION_PROCESSOR_REPO_URL",
    "access_token": "TRANSACTION_PROCESSOR_ACCESS_TOKEN",
    "main_branch": "TRANSACTION_PROCESSOR_MAIN_BRANCH",
    "log_level": "SOURCEKEEPER_LOG_LEVEL",
}


class Settings(BaseModel):
    """Resolved configuration values."""

    data_dir: Path = Field(default=Path("data"), description="Managed data root")
    repo_url: str = Field(default="", description="Repository to clone")
    access_token: str = Field(default="", description="Clone access token (secret)")
    main_branch: str = Field(default="", description="Mainline branch name")
    log_level: str = Field(default="INFO", description="Logging level")

    def require(self, name: str) -> str:
        """Return the setting *name*, raising if it is empty."""
        value = getattr(self, name)
        if not value:
            raise ConfigurationError(f"Required setting {ENV_KEYS[name]} is not configured")
        return str(value)

    def clone_url(self) -> str:
        """Return the repository URL with the access token as credentials.

        The token is used as the basic-auth user with the ``x-oauth-basic``
        password.  URLs without a network location (local paths) are
        returned unchanged.
        """
        url = self.require("repo_url")
        if not self.access_token:
            return url
        parts = urlsplit(url)
        if not parts.netloc:
            return url
        host = parts.netloc.rsplit("@", 1)[-1]
        netloc = f"{quote(self.access_token, safe='')}:x-oauth-basic@{host}"
        return urlunsplit(parts._replace(netloc=netloc))


def generate_env_template(project_path: str | Path) -> Path:
    """Write ``.env.example`` listing every setting with its default.

    Returns the path to the generated file.
    """
    lines = ["# sourcekeeper configuration template", "# Copy to .env and fill in values", ""]
    for name, info in Settings.model_fields.items():
        lines.append(f"# {info.description}")
        lines.append(f"{ENV_KEYS[name]}={info.default}")
        lines.append("")

    env_path = Path(project_path) / ".env.example"
    env_path.write_text("\n".join(lines), encoding="utf-8")
    return env_path


def _read_config_json(path: Path) -> Mapping[str, object]:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        logger.warning("Could not read %s", path, exc_info=True)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return {}
    return data


def _read_dotenv(path: Path) -> Mapping[str, str]:
    values: dict[str, str] = {}
    if not path.is_file():
        return values
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip()
    return values


def load_settings(project_path: str | Path = ".") -> Settings:
    """Load merged config: defaults -> config.json -> .env -> env vars.

    Later layers win; keys no layer sets keep the :class:`Settings` default.
    """
    root = Path(project_path)
    layers = (
        _read_config_json(root / ".sourcekeeper" / "config.json"),
        _read_dotenv(root / ".env"),
        os.environ,
    )

    values: dict[str, str] = {}
    for field, key in ENV_KEYS.items():
        for layer in layers:
            if key in layer:
                values[field] = str(layer[key])
    return Settings(**values)


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level to the root logger."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {settings.log_level}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
