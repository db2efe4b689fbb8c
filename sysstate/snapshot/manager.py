"""
Snapshot manager - high-level snapshot operations.

Ties the materializer, manifest generator, versioning sink and restore
orchestrator together for one backup root.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..catalog import ItemCatalog
from ..errors import ReplicationError, VersioningError
from ..sources.base import SourceAdapters
from ..ui.console import ConsoleUI
from ..ui.prompts import ConfirmationProvider
from .capture import SnapshotCapture
from .layout import SnapshotLayout, read_list
from .manifest import HostMetadata, Manifest, ManifestGenerator, parse_counts
from .models import CaptureResult, RestoreReport, RestoreSelection, Snapshot
from .restore import DEFAULT_SERVICE_EXCLUSIONS, SnapshotRestore
from .versioning import VersioningSink, build_commit_message


class SnapshotManager:
    """High-level snapshot operations for a backup root."""

    HISTORY_LIMIT = 5

    def __init__(
        self,
        root: Path,
        catalog: ItemCatalog,
        sources: SourceAdapters,
        home: Path,
        sink: Optional[VersioningSink] = None,
        ui: Optional[ConsoleUI] = None,
        push: bool = True,
        user: Optional[str] = None,
        service_exclusions: Tuple[str, ...] = DEFAULT_SERVICE_EXCLUSIONS,
    ):
        """
        Initialize snapshot manager.

        Args:
            root: Backup root (the versioned snapshot tree)
            catalog: Capture targets
            sources: Adapters for packages, services, desktop settings and sudo
            home: Home directory of the invoking user
            sink: Versioning sink; captures are not versioned when omitted
            ui: Console for progress lines
            push: Replicate each new revision to the remote
            user: Name recorded in the manifest (defaults to the login name)
            service_exclusions: System services restore never re-enables
        """
        self.layout = SnapshotLayout(root)
        self.catalog = catalog
        self.sources = sources
        self.home = Path(home)
        self.sink = sink
        self.ui = ui or ConsoleUI(quiet=True)
        self.push = push
        self.user = user
        self.service_exclusions = service_exclusions
        self.generator = ManifestGenerator()

        self._capture: Optional[SnapshotCapture] = None

    @property
    def root(self) -> Path:
        return self.layout.root

    @property
    def capture(self) -> SnapshotCapture:
        """Get or create snapshot capture component."""
        if self._capture is None:
            self._capture = SnapshotCapture(self.catalog, self.sources, self.home, ui=self.ui)
        return self._capture

    def restorer(self, confirm: ConfirmationProvider) -> SnapshotRestore:
        return SnapshotRestore(
            self.catalog,
            self.sources,
            self.home,
            confirm,
            ui=self.ui,
            service_exclusions=self.service_exclusions,
        )

    # =========================================================================
    # Core Operations
    # =========================================================================

    def capture_state(self, metadata: Optional[HostMetadata] = None) -> CaptureResult:
        """
        Capture the live system into the backup root and record a revision.

        Steps:
        1. Materialize all categories (clean slate per category)
        2. Regenerate MANIFEST.md from the tree
        3. Initialize the versioned store (first run only)
        4. Record a revision if anything changed and no category failed
        5. Replicate new or previously unpushed revisions offsite

        A versioning failure is reported on the result and leaves the
        captured tree in place.

        Raises:
            TargetRootError: if the backup root cannot be created.
        """
        self.ui.info(f"Backup directory: {self.root}")
        previous = Snapshot.load(self.root)
        report = self.capture.materialize(self.root)
        result = CaptureResult(report=report)

        self.ui.info("Generating manifest...")
        manifest = self.generate_manifest(metadata)
        result.manifest_written = manifest.write(self.layout)
        if result.manifest_written:
            self.ui.success("Manifest generated")
        else:
            self.ui.info("Manifest unchanged")

        current = report.snapshot or Snapshot.load(self.root)
        result.delta = previous.diff(current)

        if self.sink is None:
            return result

        if report.failed_categories:
            names = ", ".join(c.value for c in report.failed_categories)
            self.ui.warn(f"Not recording a revision, failed categories: {names}")
            return result

        try:
            if self.sink.ensure_initialized():
                self.ui.success("Initialized backup repository")
            self.ui.info("Committing changes...")
            result.revision = self.sink.record(build_commit_message(manifest, result.delta))
        except VersioningError as e:
            result.versioning_error = str(e)
            report.warn("versioning", "revision", str(e))
            self.ui.error(f"Could not record a revision: {e}")
            return result

        if result.revision is None:
            self.ui.info("No changes to commit")
            if self.push and self.sink.has_unreplicated():
                result.replicated = self._replicate(result)
            return result
        self.ui.success(f"Changes committed ({result.revision})")

        if self.push:
            result.replicated = self._replicate(result)
        return result

    def _replicate(self, result: CaptureResult) -> bool:
        self.ui.info("Pushing to GitHub...")
        try:
            self.sink.ensure_remote()
            self.sink.replicate()
        except ReplicationError as e:
            result.report.warn("versioning", "replication", str(e))
            self.ui.warn(f"Push failed, the next capture will try again: {e}")
            return False
        self.ui.success("Pushed to GitHub")
        return True

    def generate_manifest(self, metadata: Optional[HostMetadata] = None) -> Manifest:
        """Build the manifest from what is currently on disk."""
        metadata = metadata or HostMetadata.collect(user=self.user)
        return self.generator.generate(self.root, metadata)

    def restore(
        self,
        selection: RestoreSelection,
        confirm: ConfirmationProvider,
        root: Optional[Path] = None,
    ) -> RestoreReport:
        """
        Restore from `root` (defaults to the backup root).

        Raises:
            InvalidSnapshotError: if the directory holds no MANIFEST.md.
        """
        return self.restorer(confirm).restore(root or self.root, selection)

    # =========================================================================
    # Query Operations
    # =========================================================================

    def has_snapshot(self) -> bool:
        return self.layout.is_snapshot()

    def load(self) -> Snapshot:
        return Snapshot.load(self.root)

    def tracked_package_count(self) -> int:
        return len(read_list(self.layout.all_explicit))

    def snapshot_counts(self) -> Dict[str, int]:
        """Package counts recorded in MANIFEST.md; empty when there is no snapshot."""
        if not self.has_snapshot():
            return {}
        return parse_counts(self.layout.manifest.read_text(encoding="utf-8"))

    def history(self, limit: int = HISTORY_LIMIT) -> List[str]:
        if self.sink is None:
            return []
        return self.sink.history(limit)

    def last_backup_age(self) -> str:
        """Human-readable age of the newest revision, or 'never'."""
        if self.sink is None:
            return "never"
        try:
            return self.sink.last_recorded_age() or "never"
        except VersioningError:
            return "never"
