"""
Configuration management for sysstate.

Supports:
- TOML config files
- Environment variables
- Command-line overrides
- Sensible defaults

Priority (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Config file
4. Defaults
"""

import os
import sys
from pathlib import Path
from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any, List, Mapping

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .catalog import ItemCatalog
from .snapshot.restore import DEFAULT_SERVICE_EXCLUSIONS


# Default config file locations (searched in order)
CONFIG_SEARCH_PATHS = [
    Path("sysstate.toml"),                          # Current working directory
    Path("~/.config/sysstate/config.toml"),
    Path("~/.sysstate/config.toml"),
]

DEFAULT_BACKUP_DIR = "~/system-state-backup"
DEFAULT_GITHUB_REPO = "system-state-backup"

TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


@dataclass
class BackupConfig:
    """Where snapshots live and how they are replicated."""
    dir: str = DEFAULT_BACKUP_DIR
    github_repo: str = DEFAULT_GITHUB_REPO
    push: bool = True
    aur_helper: str = "yay"

    @property
    def path(self) -> Path:
        return Path(self.dir).expanduser()

    def resolve(self, home: Path) -> Path:
        """Backup path with a leading ~ taken as `home` rather than $HOME."""
        if self.dir == "~" or self.dir.startswith("~/"):
            return Path(home) / self.dir[2:]
        return self.path


@dataclass
class CatalogConfig:
    """Capture targets on top of (or instead of) the built-in catalog."""
    use_defaults: bool = True
    user_files: List[str] = field(default_factory=list)
    user_dirs: List[str] = field(default_factory=list)
    system_files: List[str] = field(default_factory=list)
    system_dirs: List[str] = field(default_factory=list)
    secret_paths: List[str] = field(default_factory=list)

    def build(self) -> ItemCatalog:
        extra = ItemCatalog.from_paths(
            user_files=self.user_files,
            user_dirs=self.user_dirs,
            system_files=self.system_files,
            system_dirs=self.system_dirs,
            secret_paths=self.secret_paths,
        )
        if not self.use_defaults:
            return extra
        catalog = ItemCatalog.default().extended(extra.items)
        # secret_paths may also name built-in entries
        promoted = []
        for path in self.secret_paths:
            item = catalog.get(path)
            if item is not None and not item.secret:
                promoted.append(replace(item, secret=True))
        return catalog.extended(promoted)


@dataclass
class RestoreConfig:
    """Restore defaults."""
    dry_run: bool = False
    service_exclusions: List[str] = field(default_factory=lambda: list(DEFAULT_SERVICE_EXCLUSIONS))


@dataclass
class OutputConfig:
    """Output configuration."""
    quiet: bool = False


@dataclass
class Config:
    """Main configuration container."""
    backup: BackupConfig = field(default_factory=BackupConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    restore: RestoreConfig = field(default_factory=RestoreConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Source tracking
    _config_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Load configuration from file, then apply environment overrides.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Config instance with loaded values
        """
        config = cls()

        # Find config file
        if config_path:
            path = Path(config_path).expanduser()
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
        else:
            path = cls._find_config_file()

        if path:
            config = cls._load_from_file(path)
            config._config_file = path

        return config.override_from_env(os.environ if environ is None else environ)

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """Find config file in default locations."""
        for path in CONFIG_SEARCH_PATHS:
            path = path.expanduser()
            if path.exists():
                return path
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load config from TOML file."""
        with open(path, "rb") as f:
            data = tomllib.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        # Backup
        if "backup" in data:
            b = data["backup"]
            config.backup = BackupConfig(
                dir=b.get("dir", config.backup.dir),
                github_repo=b.get("github_repo", config.backup.github_repo),
                push=b.get("push", config.backup.push),
                aur_helper=b.get("aur_helper", config.backup.aur_helper),
            )

        # Catalog
        if "catalog" in data:
            c = data["catalog"]
            config.catalog = CatalogConfig(
                use_defaults=c.get("use_defaults", True),
                user_files=list(c.get("user_files", [])),
                user_dirs=list(c.get("user_dirs", [])),
                system_files=list(c.get("system_files", [])),
                system_dirs=list(c.get("system_dirs", [])),
                secret_paths=list(c.get("secret_paths", [])),
            )

        # Restore
        if "restore" in data:
            r = data["restore"]
            config.restore = RestoreConfig(
                dry_run=r.get("dry_run", config.restore.dry_run),
                service_exclusions=list(r.get("service_exclusions", config.restore.service_exclusions)),
            )

        # Output
        if "output" in data:
            out = data["output"]
            config.output = OutputConfig(
                quiet=out.get("quiet", config.output.quiet),
            )

        return config

    def override_from_env(self, environ: Mapping[str, str]) -> "Config":
        """Apply SYSTEM_STATE_BACKUP_DIR, SYSTEM_STATE_GITHUB_REPO, PUSH_TO_GITHUB and DRY_RUN."""
        if environ.get("SYSTEM_STATE_BACKUP_DIR"):
            self.backup.dir = environ["SYSTEM_STATE_BACKUP_DIR"]
        if environ.get("SYSTEM_STATE_GITHUB_REPO"):
            self.backup.github_repo = environ["SYSTEM_STATE_GITHUB_REPO"]
        if environ.get("PUSH_TO_GITHUB"):
            self.backup.push = _env_flag(environ["PUSH_TO_GITHUB"])
        if environ.get("DRY_RUN"):
            self.restore.dry_run = _env_flag(environ["DRY_RUN"])
        return self

    def override_from_args(self, args) -> "Config":
        """
        Override config values from argparse namespace.

        Args with value None are ignored (keeping config file values).
        """
        if getattr(args, "backup_dir", None):
            self.backup.dir = args.backup_dir
        if getattr(args, "github_repo", None):
            self.backup.github_repo = args.github_repo
        if getattr(args, "push", None) is not None:
            self.backup.push = args.push
        if getattr(args, "dry_run", None):
            self.restore.dry_run = True
        if getattr(args, "quiet", None):
            self.output.quiet = args.quiet

        return self

    def validate(self) -> list:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.backup.dir:
            errors.append("Backup directory is required")
        elif self.backup.path.exists() and not self.backup.path.is_dir():
            errors.append(f"Backup path is not a directory: {self.backup.path}")

        if self.backup.push and not self.backup.github_repo:
            errors.append("GitHub repository name is required when push is enabled")
        if "/" in self.backup.github_repo:
            errors.append(f"GitHub repository must be a bare name, got: {self.backup.github_repo}")

        if not self.backup.aur_helper:
            errors.append("AUR helper name is required")

        for path in self.catalog.system_files + self.catalog.system_dirs:
            if not path.startswith("/"):
                errors.append(f"System config paths must be absolute: {path}")
        for path in self.catalog.user_files + self.catalog.user_dirs:
            if path.startswith("/"):
                errors.append(f"User config paths must be relative to $HOME: {path}")

        if not errors:
            try:
                catalog = self.catalog.build()
            except ValueError as e:
                errors.append(f"Invalid catalog: {e}")
            else:
                for path in self.catalog.secret_paths:
                    if catalog.get(path) is None:
                        errors.append(f"Secret path is not in the catalog: {path}")

        return errors

    def summary(self, include_config_path: bool = True) -> str:
        """Generate human-readable config summary."""
        lines = []

        if include_config_path:
            if self._config_file:
                lines.append(f"Config: {self._config_file}")
            else:
                lines.append("Config: (defaults)")

        lines.append(f"Backup: {self.backup.path}")
        if self.backup.push:
            lines.append(f"GitHub: {self.backup.github_repo} (push enabled)")
        else:
            lines.append("GitHub: (push disabled)")
        lines.append(f"AUR helper: {self.backup.aur_helper}")

        extra = sum(len(x) for x in (
            self.catalog.user_files, self.catalog.user_dirs,
            self.catalog.system_files, self.catalog.system_dirs,
        ))
        base = "built-in" if self.catalog.use_defaults else "custom only"
        lines.append(f"Catalog: {base}, {extra} extra item(s)")
        lines.append(f"Restore: dry-run {'on' if self.restore.dry_run else 'off'}, "
                     f"excluding {', '.join(self.restore.service_exclusions) or 'nothing'}")

        return "\n".join(lines)


def create_example_config(path: str = "sysstate.toml"):
    """Create example config file."""
    example = Path(__file__).parent / "config.example.toml"
    target = Path(path).expanduser()

    if target.exists():
        raise FileExistsError(f"Config file already exists: {path}")

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(example.read_text(encoding="utf-8"), encoding="utf-8")

    return target
