"""
Snapshot restore - replays a snapshot onto the current machine.

Nothing is touched before the operator confirms. In dry-run mode every
mutation is announced instead of executed, while read-only queries (is a
service already enabled? is an installer present?) still run, so the
announced actions are exactly what a live run would do.
"""

import fnmatch
import os
import shutil
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..catalog import ItemCatalog
from ..errors import InvalidSnapshotError, PrivilegeError, SourceError, SysStateError
from ..sources.base import PackageOrigin, ServiceScope, SourceAdapters
from ..ui.console import ConsoleUI
from ..ui.prompts import ConfirmationProvider
from .layout import MANIFEST_NAME, SnapshotLayout, list_files, read_list
from .models import ActionStatus, RestoreCategory, RestoreReport, RestoreSelection
from .state import RestoreState, RestoreStateMachine

# Generic targets, console logins and init-provided units are never re-enabled
DEFAULT_SERVICE_EXCLUSIONS = ("*.target", "getty@*", "systemd-*")

# Failures of a single mutation; the category carries on
ACTION_ERRORS = (OSError, shutil.Error, SourceError, PrivilegeError)

SYSTEM_FILES_SHOWN = 20


def is_excluded(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, p) for p in patterns)


class SnapshotRestore:
    """Restores packages, user configs and services from a snapshot root."""

    def __init__(
        self,
        catalog: ItemCatalog,
        sources: SourceAdapters,
        home: Path,
        confirm: ConfirmationProvider,
        ui: Optional[ConsoleUI] = None,
        service_exclusions: Sequence[str] = DEFAULT_SERVICE_EXCLUSIONS,
    ):
        """
        Initialize snapshot restore.

        Args:
            catalog: Decides which user config entries are copied back
            sources: Package/service/desktop capabilities
            home: Home directory receiving user configs
            confirm: Answers the "Continue?" and desktop-settings questions
            ui: Console for progress lines; quiet when omitted
            service_exclusions: fnmatch patterns skipped for system services
        """
        self.catalog = catalog
        self.sources = sources
        self.home = Path(home)
        self.confirm = confirm
        self.ui = ui or ConsoleUI(quiet=True)
        self.service_exclusions = tuple(service_exclusions)
        self.machine = RestoreStateMachine()

    def validate(self, root) -> SnapshotLayout:
        """
        Check that `root` holds a snapshot.

        Raises:
            InvalidSnapshotError: if MANIFEST.md is missing.
        """
        layout = SnapshotLayout(root)
        if not layout.is_snapshot():
            raise InvalidSnapshotError(f"Invalid backup directory. {MANIFEST_NAME} not found in {layout.root}")
        return layout

    def restore(self, root, selection: RestoreSelection) -> RestoreReport:
        """
        Restore the selected categories from `root`.

        Args:
            root: Snapshot root directory
            selection: Categories to replay and the dry-run flag

        Returns:
            RestoreReport with every executed, announced, failed or skipped action

        Raises:
            InvalidSnapshotError: before any prompt when `root` is not a snapshot.
        """
        layout = self.validate(root)
        self.machine = RestoreStateMachine()
        report = RestoreReport(root=layout.root, dry_run=selection.dry_run)

        self.ui.print_header("System State Restore")
        self.ui.print(f"Backup: {layout.root}")
        self.ui.print(f"Dry run: {'true' if selection.dry_run else 'false'}")
        self.ui.print(f"Categories: {', '.join(c.value for c in selection.ordered()) or 'none'}")

        if not self.confirm.confirm("Continue?", default=False):
            self.machine.transition(RestoreState.ABORTED)
            self.ui.info("Restore cancelled")
            return RestoreReport.declined(layout.root, dry_run=selection.dry_run)
        report.confirmed = True

        steps = {
            RestoreCategory.PACKAGES: self._restore_packages,
            RestoreCategory.USER_CONFIGS: self._restore_user_configs,
            RestoreCategory.SYSTEM_CONFIGS: self._restore_system_configs,
            RestoreCategory.SERVICES: self._restore_services,
            RestoreCategory.DESKTOP_SETTINGS: self._restore_desktop_settings,
        }
        for category in selection.ordered():
            self.machine.transition(RestoreState.for_category(category))
            try:
                steps[category](layout, report)
            except (OSError, SysStateError) as e:
                report.warn(category.value, category.value, f"category aborted: {e}")
                self.ui.error(f"Restoring {category.value} failed: {e}")
                continue
            report.completed.append(category)

        self.machine.transition(RestoreState.COMPLETE)
        self.ui.success("Restore complete!")
        return report

    def _apply(
        self,
        report: RestoreReport,
        category: RestoreCategory,
        description: str,
        action: Callable[[], None],
        failure: Optional[str] = None,
    ) -> ActionStatus:
        """Run one mutation, or announce it in dry-run mode."""
        if report.dry_run:
            self.ui.dry_run(description)
            report.record(category, description, ActionStatus.ANNOUNCED)
            return ActionStatus.ANNOUNCED
        try:
            action()
        except ACTION_ERRORS as e:
            report.record(category, description, ActionStatus.FAILED, error=str(e))
            report.warn(category.value, description, str(e))
            self.ui.warn(f"{failure or 'Failed'}: {e}")
            return ActionStatus.FAILED
        report.record(category, description, ActionStatus.EXECUTED)
        return ActionStatus.EXECUTED

    def _skip(self, report: RestoreReport, category: RestoreCategory, description: str, reason: str):
        report.record(category, description, ActionStatus.SKIPPED, error=reason)

    # =========================================================================
    # Packages
    # =========================================================================

    def _restore_packages(self, layout: SnapshotLayout, report: RestoreReport):
        source = self.sources.packages
        category = RestoreCategory.PACKAGES

        official = read_list(layout.official)
        self.ui.info("Installing official packages...")
        if official:
            command = source.install_command(official, PackageOrigin.TRUSTED)
            if source.has_installer(PackageOrigin.TRUSTED):
                self._apply(
                    report, category, command,
                    lambda: source.install_packages(official, PackageOrigin.TRUSTED),
                    failure="Some packages failed",
                )
            else:
                self._manual(report, category, "pacman not found. Install official packages with:", command)

        foreign = read_list(layout.foreign)
        self.ui.info("Installing AUR packages...")
        if not foreign:
            return
        if not source.has_installer(PackageOrigin.FOREIGN):
            command = source.install_command(foreign, PackageOrigin.FOREIGN)
            self._manual(report, category, "AUR helper not found. Install it first, then run:", command)
            return
        for name in foreign:
            self._apply(
                report, category,
                source.install_command([name], PackageOrigin.FOREIGN),
                lambda name=name: source.install_package(name, PackageOrigin.FOREIGN),
                failure=f"Failed to install AUR package: {name}",
            )

    def _manual(self, report: RestoreReport, category: RestoreCategory, message: str, command: str):
        report.warn(category.value, "installer", message)
        report.instructions.append(command)
        self.ui.warn(message)
        self.ui.print(f"  {command}", markup=False)

    # =========================================================================
    # Configs
    # =========================================================================

    def _restore_user_configs(self, layout: SnapshotLayout, report: RestoreReport):
        self.ui.info("Restoring user configurations...")
        category = RestoreCategory.USER_CONFIGS
        for item in self.catalog.user_items:
            if not item.restorable:
                continue
            src = layout.user_configs / item.snapshot_relpath()
            if not src.exists():
                continue
            dest = item.source_path(self.home)
            self._apply(
                report, category, f"cp -a {src} {dest}",
                lambda src=src, dest=dest, secret=item.secret: self._copy_back(src, dest, secret),
                failure=f"Could not restore {item.path}",
            )
        self.ui.success("User configs restored")

    @staticmethod
    def _copy_back(src: Path, dest: Path, secret: bool):
        if secret:
            dest.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            os.chmod(dest.parent, 0o700)
        else:
            dest.parent.mkdir(parents=True, exist_ok=True)

        if src.is_dir():
            shutil.copytree(src, dest, symlinks=True, dirs_exist_ok=True)
        else:
            shutil.copy2(src, dest)

        if secret:
            os.chmod(dest, 0o600)

    def _restore_system_configs(self, layout: SnapshotLayout, report: RestoreReport):
        """Report only. System files are never written by restore."""
        self.ui.info("Restoring system configurations...")
        base = layout.system_configs
        # files at the subtree root are command output, not copies of system paths
        files = [f for f in list_files(base) if "/" in f]
        if not files:
            return

        self.ui.warn("System configs require manual review. Found:")
        self.ui.print_lines("configs/system", files, limit=SYSTEM_FILES_SHOWN)
        self.ui.print("To restore system configs manually:")
        for top in sorted({f.split("/", 1)[0] for f in files}):
            command = f"sudo cp -a {base}/{top}/* /{top}/"
            report.instructions.append(command)
            self.ui.print(f"  {command}", markup=False)
        self.ui.print("Review each file before copying!")

    # =========================================================================
    # Services
    # =========================================================================

    def _restore_services(self, layout: SnapshotLayout, report: RestoreReport):
        services = self.sources.services
        category = RestoreCategory.SERVICES

        # custom user units first, so enabling them below can succeed
        if layout.user_units.is_dir():
            dest = self.home / self.catalog.user_unit_dir
            self._apply(
                report, category, f"cp -a {layout.user_units}/. {dest}/",
                lambda: shutil.copytree(layout.user_units, dest, symlinks=True, dirs_exist_ok=True),
                failure="Could not copy user units",
            )
            self._apply(
                report, category, "systemctl --user daemon-reload",
                lambda: services.reload(ServiceScope.USER),
                failure="Could not reload the user service manager",
            )

        self.ui.info("Enabling system services...")
        self._enable_all(report, read_list(layout.system_enabled), ServiceScope.SYSTEM, self.service_exclusions)

        self.ui.info("Enabling user services...")
        self._enable_all(report, read_list(layout.user_enabled), ServiceScope.USER, ())

        system_units = list_files(layout.system_units)
        if system_units:
            command = f"sudo cp {layout.system_units}/*.service /etc/systemd/system/"
            report.instructions.append(command)
            self.ui.info(f"Custom system service files found in {layout.system_units}/")
            self.ui.print(f"Copy manually with: {command}", markup=False)

        self.ui.success("Services configured")

    def _enable_all(self, report: RestoreReport, names: List[str], scope: ServiceScope, exclusions: Sequence[str]):
        services = self.sources.services
        category = RestoreCategory.SERVICES
        for name in names:
            command = services.enable_command(name, scope)
            if is_excluded(name, exclusions):
                self._skip(report, category, command, "excluded")
                continue
            if self._already_enabled(name, scope):
                self._skip(report, category, command, "already enabled")
                continue
            label = "user service " if scope == ServiceScope.USER else ""
            self._apply(
                report, category, command,
                lambda name=name: services.enable_service(name, scope),
                failure=f"Could not enable {label}{name}",
            )

    def _already_enabled(self, name: str, scope: ServiceScope) -> bool:
        try:
            return self.sources.services.is_enabled(name, scope)
        except SourceError:
            return False

    # =========================================================================
    # Desktop settings
    # =========================================================================

    def _restore_desktop_settings(self, layout: SnapshotLayout, report: RestoreReport):
        desktop = self.sources.desktop
        category = RestoreCategory.DESKTOP_SETTINGS
        dump = layout.desktop_dump
        if not dump.is_file() or not desktop.available():
            return

        self.ui.info("Restoring dconf settings...")
        command = desktop.load_command(dump)
        if not self.confirm.confirm("Restore dconf (GNOME/GTK) settings?", default=False):
            self._skip(report, category, command, "declined")
            return
        self._apply(
            report, category, command,
            lambda: desktop.load(dump.read_text(encoding="utf-8")),
            failure="Could not load desktop settings",
        )
