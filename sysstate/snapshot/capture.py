"""
Snapshot capture - materializes live system state into a snapshot tree.

Every category subtree is wiped and regenerated on each run, so an item that
disappeared from the live system is simply absent from the new tree. There is
no separate diffing pass.
"""

import os
import shutil
from pathlib import Path
from typing import Callable, List, Optional

from ..catalog import Category, CaptureStrategy, ConfigItem, ItemCatalog
from ..errors import CategoryPreparationError, PrivilegeError, SourceError, TargetRootError
from ..sources.base import ServiceScope, SourceAdapters
from ..ui.console import ConsoleUI
from .layout import SnapshotLayout, write_list
from .models import CaptureReport, PackageSet, Snapshot

# Failures that degrade to a warning for the item concerned
ITEM_ERRORS = (OSError, shutil.Error, SourceError, PrivilegeError)


class SnapshotCapture:
    """Captures packages, configs and services into a snapshot root."""

    def __init__(
        self,
        catalog: ItemCatalog,
        sources: SourceAdapters,
        home: Path,
        ui: Optional[ConsoleUI] = None,
    ):
        """
        Initialize snapshot capture.

        Args:
            catalog: Capture targets
            sources: Package/service/desktop/privilege capabilities
            home: Home directory of the invoking (non-elevated) user
            ui: Console for inline progress; quiet when omitted
        """
        self.catalog = catalog
        self.sources = sources
        self.home = Path(home)
        self.ui = ui or ConsoleUI(quiet=True)

    def materialize(self, root) -> CaptureReport:
        """
        Capture all categories into `root`.

        Raises:
            TargetRootError: if the root directory cannot be created.

        A category whose subtree cannot be prepared is recorded in
        `failed_categories` and skipped; item failures become warnings.
        """
        layout = SnapshotLayout(root)
        try:
            layout.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TargetRootError(f"Cannot create snapshot root {layout.root}: {e}") from e

        report = CaptureReport(root=layout.root)
        steps: List[tuple] = [
            (Category.PACKAGES, self._capture_packages),
            (Category.USER_CONFIG, self._capture_user_configs),
            (Category.SYSTEM_CONFIG, self._capture_system_configs),
            (Category.SERVICES, self._capture_services),
        ]
        for category, step in steps:
            try:
                self._prepare(layout, category)
            except CategoryPreparationError as e:
                report.failed_categories.append(category)
                self.ui.error(str(e))
                continue
            step(layout, report)

        report.snapshot = Snapshot.load(layout.root)
        return report

    def _prepare(self, layout: SnapshotLayout, category: Category):
        """Clean slate: remove the category subtree and recreate its root."""
        target = layout.category_dir(category)
        try:
            if target.is_symlink() or target.is_file():
                target.unlink()
            elif target.exists():
                shutil.rmtree(target)
            target.mkdir(parents=True)
        except OSError as e:
            raise CategoryPreparationError(category.value, f"cannot reset {target}: {e}") from e

    def _warn(self, report: CaptureReport, category: Category, item: str, error) -> None:
        warning = report.warn(category.value, item, str(error))
        self.ui.warn(f"Could not capture {warning.item}: {warning.message}")

    # =========================================================================
    # Packages
    # =========================================================================

    def _capture_packages(self, layout: SnapshotLayout, report: CaptureReport):
        self.ui.info("Capturing package lists...")
        source = self.sources.packages
        try:
            packages, problems = PackageSet.from_views(
                explicit=source.list_explicit_packages(),
                trusted=source.list_trusted_packages(),
                foreign=source.list_foreign_packages(),
            )
        except SourceError as e:
            self._warn(report, Category.PACKAGES, "package lists", e)
            return

        for problem in problems:
            self._warn(report, Category.PACKAGES, "package views", problem)

        write_list(layout.all_explicit, packages.explicit)
        write_list(layout.official, packages.official)
        write_list(layout.foreign, packages.foreign)
        self.ui.success(f"Explicit packages: {len(packages.explicit)}")
        self.ui.success(f"Official packages: {len(packages.official)}")
        self.ui.success(f"AUR packages: {len(packages.foreign)}")

        for name, path, query in (
            ("package groups", layout.groups, source.list_package_groups),
            ("package versions", layout.explicit_versions, source.list_explicit_versions),
        ):
            try:
                write_list(path, query())
            except ITEM_ERRORS as e:
                self._warn(report, Category.PACKAGES, name, e)

        report.captured[Category.PACKAGES] = len(packages.explicit)

    # =========================================================================
    # Configs
    # =========================================================================

    def _capture_user_configs(self, layout: SnapshotLayout, report: CaptureReport):
        self.ui.info("Capturing user configurations...")
        count = self._capture_items(Category.USER_CONFIG, layout.user_configs, report)

        desktop = self.sources.desktop
        if desktop.available():
            try:
                layout.desktop_dump.write_text(desktop.dump(), encoding="utf-8")
            except ITEM_ERRORS as e:
                self._warn(report, Category.USER_CONFIG, "desktop settings", e)

        report.captured[Category.USER_CONFIG] = count
        self.ui.success(f"Captured {count} user config items")

    def _capture_system_configs(self, layout: SnapshotLayout, report: CaptureReport):
        self.ui.info("Capturing system configurations (requires sudo)...")
        count = self._capture_items(Category.SYSTEM_CONFIG, layout.system_configs, report)
        report.captured[Category.SYSTEM_CONFIG] = count
        self.ui.success(f"Captured {count} system config items")

    def _capture_items(self, category: Category, base: Path, report: CaptureReport) -> int:
        captured = 0
        for item in self.catalog.for_category(category):
            try:
                if self._capture_item(item, base, report):
                    captured += 1
            except ITEM_ERRORS as e:
                self._warn(report, category, item.path, e)
        return captured

    def _capture_item(self, item: ConfigItem, base: Path, report: CaptureReport) -> bool:
        """Capture one catalog entry. Returns False when there was nothing to capture."""
        handlers: dict = {
            CaptureStrategy.COPY_TREE: self._copy_item,
            CaptureStrategy.COPY_FILE: self._copy_item,
            CaptureStrategy.LIST_ONLY: self._list_item,
            CaptureStrategy.COMMAND_OUTPUT: self._command_item,
        }
        handler: Callable[[ConfigItem, Path, CaptureReport], bool] = handlers[item.strategy]
        return handler(item, base, report)

    def _copy_item(self, item: ConfigItem, base: Path, report: CaptureReport) -> bool:
        src = item.source_path(self.home)
        if not src.exists():
            return False

        expects_dir = item.strategy == CaptureStrategy.COPY_TREE
        if src.is_dir() != expects_dir:
            kind = "directory" if expects_dir else "file"
            self._warn(report, item.category, item.path, f"expected a {kind}, skipped")
            return False

        dest = base / item.snapshot_relpath()
        if item.requires_elevated_access:
            self.sources.privilege.copy(src, dest)
            self.sources.privilege.normalize_ownership(dest)
            return True

        dest.parent.mkdir(parents=True, exist_ok=True)
        if not expects_dir:
            shutil.copy2(src, dest)
            return True

        try:
            shutil.copytree(src, dest, symlinks=False, ignore_dangling_symlinks=True)
        except shutil.Error as e:
            # copytree copies what it can and collects the rest
            failed = e.args[0] if e.args and isinstance(e.args[0], list) else []
            self._warn(report, item.category, item.path, f"{len(failed)} file(s) could not be copied")
        return True

    def _list_item(self, item: ConfigItem, base: Path, report: CaptureReport) -> bool:
        src = item.source_path(self.home)
        if not src.is_dir():
            return False
        names = sorted(n for n in os.listdir(src) if not n.startswith("."))
        write_list(base / item.snapshot_relpath(), names)
        return True

    def _command_item(self, item: ConfigItem, base: Path, report: CaptureReport) -> bool:
        if not self.sources.commands.available(item.command[0]):
            return False
        if item.requires_elevated_access:
            output = self.sources.privilege.run(item.command)
        else:
            output = self.sources.commands.run(item.command)
        dest = base / item.snapshot_relpath()
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(output, encoding="utf-8")
        return True

    # =========================================================================
    # Services
    # =========================================================================

    def _capture_services(self, layout: SnapshotLayout, report: CaptureReport):
        self.ui.info("Capturing enabled services...")
        total = 0
        for scope, path, label in (
            (ServiceScope.USER, layout.user_enabled, "User services"),
            (ServiceScope.SYSTEM, layout.system_enabled, "System services"),
        ):
            try:
                names = self.sources.services.list_enabled_services(scope)
            except SourceError as e:
                self._warn(report, Category.SERVICES, f"{scope.value} services", e)
                continue
            write_list(path, names)
            total += len(names)
            self.ui.success(f"{label}: {len(names)}")

        user_units = self.home / self.catalog.user_unit_dir
        if user_units.is_dir():
            try:
                # unit files are opaque; *.wants symlinks are kept as links
                shutil.copytree(user_units, layout.user_units, symlinks=True)
            except ITEM_ERRORS as e:
                self._warn(report, Category.SERVICES, str(user_units), e)

        system_units = Path(self.catalog.system_unit_dir)
        if system_units.is_dir():
            self._capture_system_units(system_units, layout, report)

        report.captured[Category.SERVICES] = total

    def _capture_system_units(self, src_dir: Path, layout: SnapshotLayout, report: CaptureReport):
        try:
            units = sorted(p for p in src_dir.glob(self.catalog.system_unit_pattern) if p.is_file())
        except OSError as e:
            self._warn(report, Category.SERVICES, str(src_dir), e)
            return
        if not units:
            return

        layout.system_units.mkdir(parents=True, exist_ok=True)
        privilege = self.sources.privilege
        for unit in units:
            try:
                privilege.copy(unit, layout.system_units / unit.name)
            except ITEM_ERRORS as e:
                self._warn(report, Category.SERVICES, str(unit), e)
        try:
            privilege.normalize_ownership(layout.system_units)
        except ITEM_ERRORS as e:
            self._warn(report, Category.SERVICES, str(layout.system_units), e)
