"""
CLI - Command-line interface for sysstate.

Sub-commands:
    capture       Capture system state, commit it and push it offsite
    restore       Replay a snapshot onto this machine
    manifest      Regenerate MANIFEST.md from the snapshot tree
    status        Show host facts and the age of the last backup
    history       Show recent backup revisions
    init-config   Write an example configuration file
"""

import argparse
import platform
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config, create_example_config
from .errors import InvalidSnapshotError, SourceError, TargetRootError
from .snapshot.manager import SnapshotManager
from .snapshot.models import RestoreCategory, RestoreSelection
from .snapshot.versioning import GitSink
from .sources import SourceAdapters, default_adapters, invoking_identity, running_as_root
from .ui import AutoConfirm, ConfirmationProvider, ConsoleUI, InteractionManager, select_restore


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="sysstate",
        description="Capture and restore Arch Linux system state",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    sysstate capture
    sysstate capture --no-push

    # Preview a restore, then run it for packages only
    sysstate restore ~/system-state-backup --dry-run
    sysstate restore ~/system-state-backup --only packages --yes

    sysstate status
    sysstate history

Environment Variables:
    SYSTEM_STATE_BACKUP_DIR    Backup directory (default: ~/system-state-backup)
    SYSTEM_STATE_GITHUB_REPO   GitHub repository name (default: system-state-backup)
    PUSH_TO_GITHUB             true/false (default: true)
    DRY_RUN                    true/false, restore default (default: false)
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c", "--config",
        help="Config file (default: search ./sysstate.toml, ~/.config/sysstate/config.toml)"
    )
    parser.add_argument(
        "--backup-dir",
        help="Backup directory (overrides config and SYSTEM_STATE_BACKUP_DIR)"
    )
    parser.add_argument(
        "--github-repo",
        help="GitHub repository name used as the offsite remote"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=None,
        help="Only print errors"
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    capture = sub.add_parser("capture", help="Capture system state into the backup directory")
    capture.add_argument(
        "--push",
        dest="push",
        action="store_const",
        const=True,
        default=None,
        help="Push the new revision to GitHub"
    )
    capture.add_argument(
        "--no-push",
        dest="push",
        action="store_const",
        const=False,
        help="Commit locally only"
    )

    restore = sub.add_parser("restore", help="Restore system state from a snapshot")
    restore.add_argument(
        "dir",
        nargs="?",
        help="Snapshot directory (default: the backup directory)"
    )
    restore.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Announce every change without making it"
    )
    restore.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Answer yes to every confirmation"
    )
    restore.add_argument(
        "--only",
        action="append",
        choices=[c.value for c in RestoreCategory],
        metavar="CATEGORY",
        help="Restore only this category (repeatable; skips the menu). "
             f"One of: {', '.join(c.value for c in RestoreCategory)}"
    )

    manifest = sub.add_parser("manifest", help="Regenerate MANIFEST.md and print it")
    manifest.add_argument("dir", nargs="?", help="Snapshot directory (default: the backup directory)")

    sub.add_parser("status", help="Show host facts and last backup age")
    sub.add_parser("history", help="Show recent backups")

    init = sub.add_parser("init-config", help="Write an example config file")
    init.add_argument(
        "path",
        nargs="?",
        default="~/.config/sysstate/config.toml",
        help="Target path (default: ~/.config/sysstate/config.toml)"
    )

    return parser.parse_args(argv)


def build_manager(
    config: Config,
    ui: ConsoleUI,
    root: Optional[Path] = None,
    sources: Optional[SourceAdapters] = None,
) -> SnapshotManager:
    """Wire the default adapters, catalog and git sink for `root`."""
    identity = invoking_identity()
    root = root or config.backup.resolve(identity.home)
    return SnapshotManager(
        root=root,
        catalog=config.catalog.build(),
        sources=sources or default_adapters(aur_helper=config.backup.aur_helper, identity=identity),
        home=identity.home,
        sink=GitSink(root, remote_repo=config.backup.github_repo),
        ui=ui,
        push=config.backup.push,
        user=identity.user,
        service_exclusions=tuple(config.restore.service_exclusions),
    )


# =============================================================================
# Commands
# =============================================================================

ROOT_REFUSAL = (
    "Do not run 'sysstate {command}' as root. Run it as your regular user; "
    "it asks sudo for the few system files that need it."
)


def cmd_capture(args, config: Config, ui: ConsoleUI) -> int:
    if running_as_root():
        ui.error(ROOT_REFUSAL.format(command="capture"))
        return 1
    ui.print_banner()
    manager = build_manager(config, ui)
    try:
        result = manager.capture_state()
    except TargetRootError as e:
        ui.error(str(e))
        return 1

    remote = manager.sink.remote_url() if config.backup.push else None
    ui.print_capture_summary(result.report, str(manager.root), remote_url=remote)
    return 0


def cmd_restore(args, config: Config, ui: ConsoleUI) -> int:
    if running_as_root():
        ui.error(ROOT_REFUSAL.format(command="restore"))
        return 1
    root = Path(args.dir).expanduser() if args.dir else config.backup.resolve(invoking_identity().home)
    dry_run = config.restore.dry_run
    provider: ConfirmationProvider = AutoConfirm(True) if args.yes else InteractionManager(ui.console)

    manager = build_manager(config, ui, root=root)
    try:
        manager.restorer(provider).validate(root)
    except InvalidSnapshotError as e:
        ui.error(str(e))
        return 1

    if args.only:
        selection = RestoreSelection.of(*(RestoreCategory(c) for c in args.only), dry_run=dry_run)
    else:
        selection = select_restore(provider, dry_run=dry_run)
        if selection is None:
            return 0

    try:
        report = manager.restore(selection, provider, root=root)
    except InvalidSnapshotError as e:
        ui.error(str(e))
        return 1

    if not report.confirmed:
        return 0
    ui.print_restore_summary(report)
    ui.print_next_steps(str(report.root))
    return 0


def cmd_manifest(args, config: Config, ui: ConsoleUI) -> int:
    root = Path(args.dir).expanduser() if args.dir else config.backup.resolve(invoking_identity().home)
    if not root.is_dir():
        ui.error(f"Backup directory not found: {root}")
        return 1
    manager = build_manager(config, ui, root=root)
    manifest = manager.generate_manifest()
    if manifest.write(manager.layout):
        ui.success(f"Manifest written to {manager.layout.manifest}")
    else:
        ui.info("Manifest unchanged")
    ui.print(manifest.render(), markup=False)
    return 0


def cmd_status(args, config: Config, ui: ConsoleUI) -> int:
    manager = build_manager(config, ui)
    packages = manager.sources.packages
    try:
        counts = f"{len(packages.list_trusted_packages())} official, {len(packages.list_foreign_packages())} AUR"
    except SourceError:
        counts = "unavailable"

    stored = manager.snapshot_counts()
    if stored:
        snapshot = f"{stored.get('Official', 0)} official, {stored.get('AUR', 0)} AUR"
    else:
        snapshot = "no snapshot"

    ui.print_header("System Status")
    ui.print_status([
        ("Hostname", platform.node() or "unknown"),
        ("Kernel", platform.release() or "unknown"),
        ("Packages", counts),
        ("In backup", snapshot),
        ("Last backup", manager.last_backup_age()),
        ("Backup dir", str(manager.root)),
    ])

    ui.print_header("Configuration")
    ui.print(config.summary(), markup=False)
    return 0


def cmd_history(args, config: Config, ui: ConsoleUI) -> int:
    manager = build_manager(config, ui)
    ui.print_header("Recent Backups")
    entries = manager.history()
    if entries:
        for line in entries:
            ui.print(f"  {line}", markup=False)
    else:
        ui.print("  No backups yet", markup=False)
    ui.print()
    ui.print(f"Tracked packages: {manager.tracked_package_count()}")
    return 0


def cmd_init_config(args, config: Config, ui: ConsoleUI) -> int:
    try:
        target = create_example_config(args.path)
    except FileExistsError as e:
        ui.error(str(e))
        return 1
    ui.success(f"Created {target}")
    return 0


COMMANDS = {
    "capture": cmd_capture,
    "restore": cmd_restore,
    "manifest": cmd_manifest,
    "status": cmd_status,
    "history": cmd_history,
    "init-config": cmd_init_config,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = Config.load(args.config).override_from_args(args)
    except FileNotFoundError as e:
        ConsoleUI().error(str(e))
        return 1

    ui = ConsoleUI(quiet=config.output.quiet)

    errors = config.validate()
    if errors and args.command != "init-config":
        for error in errors:
            ui.error(error)
        return 1

    try:
        return COMMANDS[args.command](args, config, ui)
    except KeyboardInterrupt:
        ui.print()
        ui.warn("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
