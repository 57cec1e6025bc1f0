"""Site build and deploy configuration loaded from the environment.

Values come from (highest precedence first) explicit overrides, ``SITEPUB_*``
environment variables, a ``.env`` file and an optional ``sitepub.toml`` in
the working directory.  Relative directories are resolved against the
project root by :class:`DeployContext`, never against the process cwd.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

logger = logging.getLogger(__name__)

_ENV_FILE = ".env"
_TOML_FILE = "sitepub.toml"

# Names of the persisted deploy state inside ``output_dir``.
LOCK_FILENAME = "deploy.lock"
MARKER_FILENAME = "latest-deploy.txt"


class Settings(BaseSettings):
    """Application settings loaded from environment variables with SITEPUB_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SITEPUB_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        toml_file=_TOML_FILE,
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Layout
    project_root: Path | None = None
    src_dir: Path = Path("src")
    build_dir: Path = Path("build")
    output_dir: Path = Path("out")
    deploy_dir: Path = Path("out/public")
    snapshots_dir: Path = Path("out/snapshots")

    # Deploy lock
    lock_wait_max_attempts: int = Field(default=30, ge=0)
    lock_wait_delay: float = Field(default=2.0, ge=0.0)
    lock_stale_seconds: float | None = Field(default=None, gt=0.0)

    # Promotion
    removal_retries: int = Field(default=2, ge=0)

    # Build
    css_compress: bool = True
    script_compiler: str = "npx tsc"

    # Telemetry
    metrics_file: Path | None = None
    structured_logging: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    @staticmethod
    def config_sources(cwd: Path | None = None) -> list[Path]:
        """Return the configuration files that exist for *cwd*."""
        base = cwd or Path.cwd()
        return [path for path in (base / _TOML_FILE, base / _ENV_FILE) if path.is_file()]


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings (project_root=%s)", settings.project_root or "<auto>")

    return settings


class DeployContext(BaseModel):
    """Absolute paths and tunables shared by every deploy component.

    Built once per command from :class:`Settings` so that no component
    reads the environment or the cwd on its own.
    """

    model_config = ConfigDict(frozen=True)

    root: Path
    src_dir: Path
    build_dir: Path
    output_dir: Path
    deploy_dir: Path
    snapshots_dir: Path
    settings: Settings

    @property
    def lock_path(self) -> Path:
        return self.output_dir / LOCK_FILENAME

    @property
    def marker_path(self) -> Path:
        return self.output_dir / MARKER_FILENAME

    def relative(self, path: Path) -> str:
        """Render *path* relative to the project root when possible, for logs."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    @classmethod
    def from_settings(cls, settings: Settings, root: Path | None = None) -> DeployContext:
        """Resolve *settings* against *root*.

        When neither *root* nor ``settings.project_root`` is given the root
        is discovered through git (see :func:`sitepub_core.git.find_project_root`).
        """
        if root is None:
            root = settings.project_root
        if root is None:
            from sitepub_core.git import find_project_root

            root = find_project_root(Path.cwd())
        root = root.resolve()

        def _absolute(path: Path) -> Path:
            return path if path.is_absolute() else root / path

        return cls(
            root=root,
            src_dir=_absolute(settings.src_dir),
            build_dir=_absolute(settings.build_dir),
            output_dir=_absolute(settings.output_dir),
            deploy_dir=_absolute(settings.deploy_dir),
            snapshots_dir=_absolute(settings.snapshots_dir),
            settings=settings,
        )
