"""
Data models for the capture/restore system.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..catalog import Category
from ..sources.base import ServiceScope
from .layout import SnapshotLayout, TIMESTAMP_PREFIX, list_files, read_list


@dataclass(frozen=True)
class ItemWarning:
    """An item-level soft failure: recorded, reported, never fatal."""
    category: str
    item: str
    message: str

    def __str__(self) -> str:
        return f"{self.category}: {self.item}: {self.message}"


# =============================================================================
# Captured state
# =============================================================================

@dataclass(frozen=True)
class PackageSet:
    """
    Explicitly installed packages, partitioned by origin.

    Invariant: official ∪ foreign == explicit and official ∩ foreign == ∅.
    """
    explicit: Tuple[str, ...] = ()
    official: Tuple[str, ...] = ()
    foreign: Tuple[str, ...] = ()

    @classmethod
    def from_views(
        cls,
        explicit: Iterable[str],
        trusted: Iterable[str],
        foreign: Iterable[str],
    ) -> Tuple['PackageSet', List[str]]:
        """
        Build a partitioned set from three independently queried views.

        The explicit view is authoritative: a package the trusted view does
        not claim is foreign. Any disagreement between the raw views (e.g.
        a package installed between two queries) is returned as a list of
        human-readable discrepancies.
        """
        explicit_set = set(explicit)
        trusted_set = set(trusted)
        foreign_set = set(foreign)

        official = explicit_set & trusted_set
        derived_foreign = explicit_set - official

        problems: List[str] = []
        for name in sorted(trusted_set - explicit_set):
            problems.append(f"{name} listed as trusted but not explicit")
        for name in sorted(foreign_set - derived_foreign):
            problems.append(f"{name} listed as foreign but not explicit-only")
        for name in sorted(derived_foreign - foreign_set):
            problems.append(f"{name} has no trusted origin but was not listed as foreign")

        return cls(
            explicit=tuple(sorted(explicit_set)),
            official=tuple(sorted(official)),
            foreign=tuple(sorted(derived_foreign)),
        ), problems

    def is_partition(self) -> bool:
        official, foreign = set(self.official), set(self.foreign)
        return not (official & foreign) and (official | foreign) == set(self.explicit)


@dataclass(frozen=True)
class UnitDefinition:
    """Raw unit file content, stored opaquely."""
    name: str
    content: str


@dataclass(frozen=True)
class ServiceRecord:
    name: str
    scope: ServiceScope
    unit: Optional[UnitDefinition] = None

    @property
    def key(self) -> str:
        return f"{self.scope.value}:{self.name}"


@dataclass
class Snapshot:
    """
    Logical view of a materialized snapshot tree.

    Always loaded from disk so that it reflects exactly what was captured.
    """
    root: Path
    packages: PackageSet
    configs: Dict[Category, Tuple[str, ...]]
    services: Tuple[ServiceRecord, ...]
    manifest: str = ""
    created_at: Optional[str] = None

    @property
    def layout(self) -> SnapshotLayout:
        return SnapshotLayout(self.root)

    @classmethod
    def load(cls, root) -> 'Snapshot':
        """Read a snapshot tree; missing parts load as empty."""
        layout = SnapshotLayout(root)

        packages = PackageSet(
            explicit=tuple(read_list(layout.all_explicit)),
            official=tuple(read_list(layout.official)),
            foreign=tuple(read_list(layout.foreign)),
        )

        services: List[ServiceRecord] = []
        for scope, listing, units in (
            (ServiceScope.SYSTEM, layout.system_enabled, layout.system_units),
            (ServiceScope.USER, layout.user_enabled, layout.user_units),
        ):
            for name in read_list(listing):
                unit = None
                unit_path = units / name
                if unit_path.is_file():
                    unit = UnitDefinition(name=name, content=unit_path.read_text(encoding="utf-8", errors="replace"))
                services.append(ServiceRecord(name=name, scope=scope, unit=unit))

        manifest = ""
        created_at = None
        if layout.manifest.is_file():
            manifest = layout.manifest.read_text(encoding="utf-8")
            created_at = parse_timestamp(manifest)

        return cls(
            root=layout.root,
            packages=packages,
            configs={
                Category.USER_CONFIG: tuple(list_files(layout.user_configs)),
                Category.SYSTEM_CONFIG: tuple(list_files(layout.system_configs)),
            },
            services=tuple(services),
            manifest=manifest,
            created_at=created_at,
        )

    def service_names(self, scope: ServiceScope) -> List[str]:
        return [s.name for s in self.services if s.scope == scope]

    def config_files(self) -> List[str]:
        out: List[str] = []
        for category in (Category.USER_CONFIG, Category.SYSTEM_CONFIG):
            prefix = "user" if category == Category.USER_CONFIG else "system"
            out.extend(f"{prefix}/{p}" for p in self.configs.get(category, ()))
        return out

    def diff(self, newer: 'Snapshot') -> 'SnapshotDelta':
        """What changed going from self (older) to `newer`."""
        def added_removed(old: Iterable[str], new: Iterable[str]) -> Tuple[List[str], List[str]]:
            old_set, new_set = set(old), set(new)
            return sorted(new_set - old_set), sorted(old_set - new_set)

        pkg_add, pkg_rm = added_removed(self.packages.explicit, newer.packages.explicit)
        svc_add, svc_rm = added_removed(
            (s.key for s in self.services), (s.key for s in newer.services)
        )
        cfg_add, cfg_rm = added_removed(self.config_files(), newer.config_files())
        return SnapshotDelta(
            packages_added=pkg_add,
            packages_removed=pkg_rm,
            services_added=svc_add,
            services_removed=svc_rm,
            configs_added=cfg_add,
            configs_removed=cfg_rm,
        )


def parse_timestamp(manifest_text: str) -> Optional[str]:
    for line in manifest_text.splitlines():
        if line.startswith(TIMESTAMP_PREFIX):
            return line[len(TIMESTAMP_PREFIX):].strip()
    return None


@dataclass
class SnapshotDelta:
    """Difference between two captures of the same machine."""
    packages_added: List[str] = field(default_factory=list)
    packages_removed: List[str] = field(default_factory=list)
    services_added: List[str] = field(default_factory=list)
    services_removed: List[str] = field(default_factory=list)
    configs_added: List[str] = field(default_factory=list)
    configs_removed: List[str] = field(default_factory=list)

    @property
    def total_differences(self) -> int:
        return sum(len(x) for x in (
            self.packages_added, self.packages_removed,
            self.services_added, self.services_removed,
            self.configs_added, self.configs_removed,
        ))


@dataclass
class CaptureReport:
    """Outcome of one materialization run."""
    root: Path
    snapshot: Optional[Snapshot] = None
    captured: Dict[Category, int] = field(default_factory=dict)
    warnings: List[ItemWarning] = field(default_factory=list)
    failed_categories: List[Category] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def warn(self, category: str, item: str, message: str) -> ItemWarning:
        warning = ItemWarning(category=category, item=item, message=message)
        self.warnings.append(warning)
        return warning

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


@dataclass
class CaptureResult:
    """A capture run as seen by the caller: tree, manifest, delta, revision."""
    report: CaptureReport
    delta: SnapshotDelta = field(default_factory=SnapshotDelta)
    manifest_written: bool = False
    revision: Optional[str] = None
    replicated: bool = False
    versioning_error: Optional[str] = None

    @property
    def recorded(self) -> bool:
        return self.revision is not None

    @property
    def warning_count(self) -> int:
        return self.report.warning_count


# =============================================================================
# Restore
# =============================================================================

class RestoreCategory(str, Enum):
    """Unit of selection for restore."""
    PACKAGES = "packages"
    USER_CONFIGS = "user-configs"
    SYSTEM_CONFIGS = "system-configs"
    SERVICES = "services"
    DESKTOP_SETTINGS = "desktop-settings"


# Order used when several categories are selected
RESTORE_ORDER: Tuple[RestoreCategory, ...] = (
    RestoreCategory.PACKAGES,
    RestoreCategory.USER_CONFIGS,
    RestoreCategory.SYSTEM_CONFIGS,
    RestoreCategory.SERVICES,
    RestoreCategory.DESKTOP_SETTINGS,
)


class MenuChoice(str, Enum):
    """Interactive selector entries."""
    ALL = "all"
    PACKAGES = "packages"
    USER_CONFIGS = "user-configs"
    SERVICES = "services"
    EXIT = "exit"


@dataclass(frozen=True)
class RestoreSelection:
    """Categories chosen for one restore invocation."""
    categories: FrozenSet[RestoreCategory]
    dry_run: bool = False

    @classmethod
    def everything(cls, dry_run: bool = False) -> 'RestoreSelection':
        return cls(categories=frozenset(RESTORE_ORDER), dry_run=dry_run)

    @classmethod
    def of(cls, *categories: RestoreCategory, dry_run: bool = False) -> 'RestoreSelection':
        return cls(categories=frozenset(categories), dry_run=dry_run)

    @classmethod
    def from_choice(cls, choice: MenuChoice, dry_run: bool = False) -> Optional['RestoreSelection']:
        """Map a selector entry to a selection; EXIT maps to None."""
        if choice == MenuChoice.EXIT:
            return None
        if choice == MenuChoice.ALL:
            return cls.everything(dry_run=dry_run)
        return cls.of(RestoreCategory(choice.value), dry_run=dry_run)

    def ordered(self) -> List[RestoreCategory]:
        return [c for c in RESTORE_ORDER if c in self.categories]


class ActionStatus(str, Enum):
    EXECUTED = "executed"
    ANNOUNCED = "announced"    # dry-run
    FAILED = "failed"
    SKIPPED = "skipped"        # already satisfied / excluded / declined


@dataclass
class RestoreAction:
    """A single (possibly announced-only) mutation."""
    category: RestoreCategory
    description: str
    status: ActionStatus
    error: Optional[str] = None


@dataclass
class RestoreReport:
    """Result of a restore invocation."""
    root: Path
    dry_run: bool = False
    confirmed: bool = False
    actions: List[RestoreAction] = field(default_factory=list)
    warnings: List[ItemWarning] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    completed: List[RestoreCategory] = field(default_factory=list)

    def record(
        self,
        category: RestoreCategory,
        description: str,
        status: ActionStatus,
        error: Optional[str] = None,
    ) -> RestoreAction:
        action = RestoreAction(category=category, description=description, status=status, error=error)
        self.actions.append(action)
        return action

    def warn(self, category: str, item: str, message: str) -> ItemWarning:
        warning = ItemWarning(category=category, item=item, message=message)
        self.warnings.append(warning)
        return warning

    @property
    def attempted(self) -> List[str]:
        """Descriptions of mutations that ran or would have run."""
        return [
            a.description for a in self.actions
            if a.status in (ActionStatus.EXECUTED, ActionStatus.ANNOUNCED, ActionStatus.FAILED)
        ]

    @property
    def announced(self) -> List[str]:
        return [a.description for a in self.actions if a.status == ActionStatus.ANNOUNCED]

    @property
    def executed(self) -> List[str]:
        return [a.description for a in self.actions if a.status == ActionStatus.EXECUTED]

    @property
    def failed(self) -> List[RestoreAction]:
        return [a for a in self.actions if a.status == ActionStatus.FAILED]

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def for_category(self, category: RestoreCategory) -> List[RestoreAction]:
        return [a for a in self.actions if a.category == category]

    @classmethod
    def declined(cls, root: Path, dry_run: bool = False) -> 'RestoreReport':
        return cls(root=root, dry_run=dry_run, confirmed=False)
