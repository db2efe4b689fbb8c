"""
Item catalog - declarative list of capture targets.

Each ConfigItem names one path on the live system, the category it belongs to
and the strategy used to capture it. The catalog is an immutable value passed
into the materializer and the restore orchestrator; nothing reads a global
list at run time.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Tuple


class Category(str, Enum):
    """Capture categories. Each owns one subtree of the snapshot root."""
    PACKAGES = "packages"
    USER_CONFIG = "user-config"
    SYSTEM_CONFIG = "system-config"
    SERVICES = "services"


class CaptureStrategy(str, Enum):
    """How a catalog entry is materialized."""
    COPY_TREE = "copy-tree"            # directory, copied recursively
    COPY_FILE = "copy-file"            # single file
    LIST_ONLY = "list-only"            # directory listing written to `output`
    COMMAND_OUTPUT = "command-output"  # stdout of `command` written to `output`


CONFIG_CATEGORIES = (Category.USER_CONFIG, Category.SYSTEM_CONFIG)


@dataclass(frozen=True)
class ConfigItem:
    """
    One capture target.

    `path` is relative to the home directory for user items and absolute for
    system items. LIST_ONLY and COMMAND_OUTPUT items write a single text file
    named by `output` at the root of their category subtree.
    """
    path: str
    category: Category
    strategy: CaptureStrategy = CaptureStrategy.COPY_TREE
    requires_elevated_access: bool = False
    secret: bool = False               # tighten permissions after restore
    output: Optional[str] = None
    command: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.category not in CONFIG_CATEGORIES:
            raise ValueError(f"ConfigItem category must be a config category, got {self.category.value}")
        if self.strategy in (CaptureStrategy.LIST_ONLY, CaptureStrategy.COMMAND_OUTPUT) and not self.output:
            raise ValueError(f"{self.strategy.value} item needs an output name: {self.path}")
        if self.strategy == CaptureStrategy.COMMAND_OUTPUT and not self.command:
            raise ValueError(f"command-output item needs a command: {self.path}")
        if self.category == Category.SYSTEM_CONFIG and self.is_copy and not self.path.startswith("/"):
            raise ValueError(f"System config paths must be absolute: {self.path}")

    @property
    def is_copy(self) -> bool:
        return self.strategy in (CaptureStrategy.COPY_TREE, CaptureStrategy.COPY_FILE)

    @property
    def restorable(self) -> bool:
        """Only copied items can be replayed onto a machine."""
        return self.is_copy

    def source_path(self, home: Path) -> Path:
        """Live-system location of this item."""
        if self.category == Category.USER_CONFIG:
            return home / self.path
        return Path(self.path)

    def snapshot_relpath(self) -> PurePosixPath:
        """Location inside the category subtree."""
        if not self.is_copy:
            return PurePosixPath(self.output)
        return PurePosixPath(self.path.lstrip("/"))


def _user(path: str, strategy: CaptureStrategy = CaptureStrategy.COPY_TREE, **kwargs) -> ConfigItem:
    return ConfigItem(path=path, category=Category.USER_CONFIG, strategy=strategy, **kwargs)


def _system(path: str, strategy: CaptureStrategy = CaptureStrategy.COPY_TREE, **kwargs) -> ConfigItem:
    kwargs.setdefault("requires_elevated_access", True)
    return ConfigItem(path=path, category=Category.SYSTEM_CONFIG, strategy=strategy, **kwargs)


_FILE = CaptureStrategy.COPY_FILE

DEFAULT_USER_ITEMS: Tuple[ConfigItem, ...] = (
    _user(".bashrc", _FILE),
    _user(".bash_profile", _FILE),
    _user(".profile", _FILE),
    _user(".config/hypr"),
    _user(".config/waybar"),
    _user(".config/alacritty"),
    _user(".config/kitty"),
    _user(".config/ghostty"),
    _user(".config/nvim"),
    _user(".config/fish"),
    _user(".config/starship.toml", _FILE),
    _user(".config/mako"),
    _user(".config/walker"),
    _user(".config/btop"),
    _user(".config/cava"),
    _user(".config/fastfetch"),
    _user(".config/lazygit"),
    _user(".config/lazydocker"),
    _user(".config/zathura"),
    _user(".config/imv"),
    _user(".config/fontconfig"),
    _user(".config/mimeapps.list", _FILE),
    _user(".config/chromium-flags.conf", _FILE),
    _user(".config/brave-flags.conf", _FILE),
    _user(".config/environment.d"),
    _user(".config/autostart"),
    _user(".config/uwsm"),
    _user(".config/swayosd"),
    _user(".config/elephant"),
    _user(".config/mise"),
    _user(".config/git"),
    _user(".config/xdg-terminals.list", _FILE),
    _user(".config/gtk-3.0"),
    _user(".config/gtk-4.0"),
    _user(".ssh/config", _FILE, secret=True),
    _user(".config", CaptureStrategy.LIST_ONLY, output="config-dirs-list.txt"),
    _user(".local/share/fonts", CaptureStrategy.LIST_ONLY, output="fonts-list.txt"),
)

DEFAULT_SYSTEM_ITEMS: Tuple[ConfigItem, ...] = (
    _system("/etc/systemd/network"),
    _system("/etc/mkinitcpio.conf", _FILE),
    _system("/etc/locale.conf", _FILE),
    _system("/etc/vconsole.conf", _FILE),
    _system("/etc/hostname", _FILE),
    _system("/etc/hosts", _FILE),
    _system("/etc/fstab", _FILE),
    _system("/etc/pacman.conf", _FILE),
    _system("/etc/pacman.d/mirrorlist", _FILE),
    _system("/etc/makepkg.conf", _FILE),
    _system("/etc/ufw"),
    _system("/etc/sddm.conf.d"),
    _system("/etc/iwd"),
    _system("/etc/modprobe.d"),
    _system("/etc/sysctl.d"),
    _system("/etc/X11/xorg.conf.d"),
    _system("/etc/limine-entry-tool.conf", _FILE),
    _system("/etc/limine-snapper-sync.conf", _FILE),
    _system("/etc/snapper"),
    _system("/etc/environment", _FILE),
    _system("ufw", CaptureStrategy.COMMAND_OUTPUT, output="ufw-status.txt",
            command=("ufw", "status", "verbose")),
    _system("hostname", CaptureStrategy.COMMAND_OUTPUT, output="hostname.txt",
            command=("hostname",), requires_elevated_access=False),
    _system("timedatectl", CaptureStrategy.COMMAND_OUTPUT, output="timezone.txt",
            command=("timedatectl", "show"), requires_elevated_access=False),
    _system("locale", CaptureStrategy.COMMAND_OUTPUT, output="locale-current.txt",
            command=("locale",), requires_elevated_access=False),
)


@dataclass(frozen=True)
class ItemCatalog:
    """Immutable set of capture targets plus the custom-unit locations."""
    items: Tuple[ConfigItem, ...] = field(default=DEFAULT_USER_ITEMS + DEFAULT_SYSTEM_ITEMS)
    user_unit_dir: str = ".config/systemd/user"       # relative to home
    system_unit_dir: str = "/etc/systemd/system"
    system_unit_pattern: str = "*.service"

    def __post_init__(self):
        seen = set()
        for item in self.items:
            key = (item.category, item.path)
            if key in seen:
                raise ValueError(f"Duplicate catalog entry: {item.path}")
            seen.add(key)

    @classmethod
    def default(cls) -> "ItemCatalog":
        return cls()

    @classmethod
    def from_paths(
        cls,
        user_files: Iterable[str] = (),
        user_dirs: Iterable[str] = (),
        system_files: Iterable[str] = (),
        system_dirs: Iterable[str] = (),
        secret_paths: Iterable[str] = (),
    ) -> "ItemCatalog":
        """Build a catalog from plain path lists (used by the config layer)."""
        secrets = set(secret_paths)
        items: List[ConfigItem] = []
        items.extend(_user(p, _FILE, secret=p in secrets) for p in user_files)
        items.extend(_user(p, secret=p in secrets) for p in user_dirs)
        items.extend(_system(p, _FILE) for p in system_files)
        items.extend(_system(p) for p in system_dirs)
        return cls(items=tuple(items))

    def extended(self, extra: Iterable[ConfigItem]) -> "ItemCatalog":
        """
        Return a new catalog with additional items appended.

        An extra item with the same category and path as an existing one
        replaces it; a secret entry stays secret.
        """
        extra = tuple(extra)
        existing = {(i.category, i.path): i for i in self.items}
        merged = []
        for item in extra:
            old = existing.pop((item.category, item.path), None)
            if old is not None and old.secret and not item.secret:
                item = replace(item, secret=True)
            merged.append(item)
        kept = tuple(i for i in self.items if (i.category, i.path) in existing)
        return ItemCatalog(
            items=kept + tuple(merged),
            user_unit_dir=self.user_unit_dir,
            system_unit_dir=self.system_unit_dir,
            system_unit_pattern=self.system_unit_pattern,
        )

    def for_category(self, category: Category) -> Tuple[ConfigItem, ...]:
        return tuple(i for i in self.items if i.category == category)

    @property
    def user_items(self) -> Tuple[ConfigItem, ...]:
        return self.for_category(Category.USER_CONFIG)

    @property
    def system_items(self) -> Tuple[ConfigItem, ...]:
        return self.for_category(Category.SYSTEM_CONFIG)

    def get(self, path: str) -> Optional[ConfigItem]:
        for item in self.items:
            if item.path == path:
                return item
        return None
