"""
On-disk layout of a snapshot root.

    packages/{all-explicit,official,aur,groups,all-explicit-versions}.txt
    configs/user/<paths relative to $HOME>
    configs/system/<absolute paths minus leading slash>
    services/{user-enabled,system-enabled}.txt
    services/{user-units,system-units}/
    MANIFEST.md
"""

from pathlib import Path
from typing import Iterable, List, Union

from ..catalog import Category

MANIFEST_NAME = "MANIFEST.md"
TIMESTAMP_PREFIX = "**Last Updated:**"
DESKTOP_DUMP_NAME = "dconf-dump.txt"


class SnapshotLayout:
    """Path arithmetic for one snapshot root."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()

    # packages/
    @property
    def packages_dir(self) -> Path:
        return self.root / "packages"

    @property
    def all_explicit(self) -> Path:
        return self.packages_dir / "all-explicit.txt"

    @property
    def official(self) -> Path:
        return self.packages_dir / "official.txt"

    @property
    def foreign(self) -> Path:
        return self.packages_dir / "aur.txt"

    @property
    def groups(self) -> Path:
        return self.packages_dir / "groups.txt"

    @property
    def explicit_versions(self) -> Path:
        return self.packages_dir / "all-explicit-versions.txt"

    # configs/
    @property
    def configs_dir(self) -> Path:
        return self.root / "configs"

    @property
    def user_configs(self) -> Path:
        return self.configs_dir / "user"

    @property
    def system_configs(self) -> Path:
        return self.configs_dir / "system"

    @property
    def desktop_dump(self) -> Path:
        return self.user_configs / DESKTOP_DUMP_NAME

    # services/
    @property
    def services_dir(self) -> Path:
        return self.root / "services"

    @property
    def user_enabled(self) -> Path:
        return self.services_dir / "user-enabled.txt"

    @property
    def system_enabled(self) -> Path:
        return self.services_dir / "system-enabled.txt"

    @property
    def user_units(self) -> Path:
        return self.services_dir / "user-units"

    @property
    def system_units(self) -> Path:
        return self.services_dir / "system-units"

    @property
    def manifest(self) -> Path:
        return self.root / MANIFEST_NAME

    def category_dir(self, category: Category) -> Path:
        """Subtree owned (and wiped) by a capture category."""
        return {
            Category.PACKAGES: self.packages_dir,
            Category.USER_CONFIG: self.user_configs,
            Category.SYSTEM_CONFIG: self.system_configs,
            Category.SERVICES: self.services_dir,
        }[category]

    def is_snapshot(self) -> bool:
        return self.manifest.is_file()


def read_list(path: Path) -> List[str]:
    """Read a one-name-per-line list; a missing file is an empty list."""
    if not path.is_file():
        return []
    return [ln.strip() for ln in path.read_text(encoding="utf-8").splitlines() if ln.strip()]


def write_list(path: Path, names: Iterable[str]) -> None:
    """Write one name per line, newline-terminated (so `wc -l` == len)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = "".join(f"{n}\n" for n in names)
    path.write_text(text, encoding="utf-8")


def list_files(base: Path) -> List[str]:
    """Sorted POSIX paths of all regular files under `base`, relative to it."""
    if not base.is_dir():
        return []
    return sorted(
        p.relative_to(base).as_posix()
        for p in base.rglob("*")
        if p.is_file() and not p.is_symlink()
    )
