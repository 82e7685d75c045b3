"""repokeeper configuration management using Pydantic."""

from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from repokeeper.constants import (
    ATTRIBUTES_FILE,
    CONFIG_DIR,
    CONFIG_FILE,
    DEFAULT_ADD_MESSAGE,
    DEFAULT_GIT_BINARY,
    DEFAULT_REMOTE,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_UPDATE_MESSAGE,
    PREVIEW_LIMIT,
)
from repokeeper.exceptions import ConfigurationError


class GitToolConfig(BaseModel):
    """How the git executable is invoked."""

    binary: str = DEFAULT_GIT_BINARY
    timeout_seconds: int = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=1, le=3600)


class CommitConfig(BaseModel):
    """Defaults for the commit operation."""

    default_remote: str = DEFAULT_REMOTE
    default_paths: list[str] = Field(default_factory=lambda: ["."])


class EolConfig(BaseModel):
    """Defaults for the EOL operation."""

    attributes_file: str = ATTRIBUTES_FILE
    preview_limit: int = Field(default=PREVIEW_LIMIT, ge=1, le=1000)


class SubmoduleConfig(BaseModel):
    """Commit messages used by the submodule operation.

    Both accept ``{name}``, ``{path}``, ``{url}`` and ``{branch}`` fields.
    """

    add_message: str = DEFAULT_ADD_MESSAGE
    update_message: str = DEFAULT_UPDATE_MESSAGE

    def render(self, template: str, name: str, path: str, url: str, branch: str | None) -> str:
        return template.format(name=name, path=path, url=url, branch=branch or "default")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="info", pattern="^(debug|info|warn|error)$")
    directory: str | None = None
    json_output: bool = False


class RepoKeeperConfig(BaseModel):
    """Complete repokeeper configuration."""

    git: GitToolConfig = Field(default_factory=GitToolConfig)
    commit: CommitConfig = Field(default_factory=CommitConfig)
    eol: EolConfig = Field(default_factory=EolConfig)
    submodule: SubmoduleConfig = Field(default_factory=SubmoduleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def default_path(cls, repo_path: str | Path = ".") -> Path:
        return Path(repo_path) / CONFIG_DIR / CONFIG_FILE

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "RepoKeeperConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Defaults to .repokeeper/config.yaml

        Returns:
            RepoKeeperConfig instance

        Raises:
            ConfigurationError: If the file is not valid YAML or fails validation
        """
        config_path = cls.default_path() if config_path is None else Path(config_path)

        if not config_path.exists():
            return cls()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {config_path}", details={"error": str(e)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {config_path}",
                details={"type": type(data).__name__},
            )

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepoKeeperConfig":
        """Create configuration from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            RepoKeeperConfig instance
        """
        try:
            return cls(**data)
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid configuration", details={"errors": e.errors(include_url=False)}
            ) from e

    def save(self, config_path: str | Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Defaults to .repokeeper/config.yaml
        """
        config_path = self.default_path() if config_path is None else Path(config_path)

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()
