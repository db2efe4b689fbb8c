"""
Tests for snapshot data models: package partition, snapshot loading, deltas
and restore selections.
"""

from pathlib import Path

from sysstate.catalog import Category
from sysstate.snapshot.models import (
    ActionStatus,
    MenuChoice,
    PackageSet,
    RestoreCategory,
    RestoreReport,
    RestoreSelection,
    Snapshot,
)
from sysstate.sources.base import ServiceScope
from sysstate.tests.mocks import EXPLICIT_PACKAGES, FOREIGN_PACKAGES, TRUSTED_PACKAGES


class TestPackageSet:

    def test_partition_from_consistent_views(self):
        packages, problems = PackageSet.from_views(EXPLICIT_PACKAGES, TRUSTED_PACKAGES, FOREIGN_PACKAGES)
        assert problems == []
        assert packages.official == ("base", "git", "linux")
        assert packages.foreign == ("yay",)
        assert packages.explicit == ("base", "git", "linux", "yay")
        assert packages.is_partition()

    def test_explicit_view_is_authoritative(self):
        # a package that appeared between queries is only in the explicit view
        packages, problems = PackageSet.from_views(
            explicit=["base", "firefox", "yay"],
            trusted=["base"],
            foreign=["yay"],
        )
        assert packages.is_partition()
        assert "firefox" in packages.foreign
        assert problems == ["firefox has no trusted origin but was not listed as foreign"]

    def test_stale_trusted_entry_dropped(self):
        packages, problems = PackageSet.from_views(
            explicit=["base"],
            trusted=["base", "removed-pkg"],
            foreign=[],
        )
        assert packages.official == ("base",)
        assert packages.is_partition()
        assert problems == ["removed-pkg listed as trusted but not explicit"]

    def test_overlap_is_not_a_partition(self):
        broken = PackageSet(explicit=("a",), official=("a",), foreign=("a",))
        assert not broken.is_partition()


class TestSnapshot:

    def test_load_reads_every_category(self, snapshot_root: Path):
        snapshot = Snapshot.load(snapshot_root)

        assert snapshot.packages.explicit == tuple(EXPLICIT_PACKAGES)
        assert snapshot.service_names(ServiceScope.USER) == ["pipewire.service", "wireplumber.service"]
        assert "etc/hosts" in snapshot.configs[Category.SYSTEM_CONFIG]
        assert ".ssh/config" in snapshot.configs[Category.USER_CONFIG]
        assert snapshot.created_at == "2024-05-01 10:00:00"

    def test_load_embeds_custom_units(self, snapshot_root: Path):
        (snapshot_root / "services/user-enabled.txt").write_text("backup.service\n")
        snapshot = Snapshot.load(snapshot_root)
        [record] = [s for s in snapshot.services if s.scope == ServiceScope.USER]
        assert record.unit is not None
        assert "Nightly backup" in record.unit.content

    def test_missing_root_loads_empty(self, tmp_path: Path):
        snapshot = Snapshot.load(tmp_path / "nothing")
        assert snapshot.packages.explicit == ()
        assert snapshot.services == ()
        assert snapshot.config_files() == []

    def test_diff(self, snapshot_root: Path):
        older = Snapshot.load(snapshot_root)

        (snapshot_root / "packages/all-explicit.txt").write_text("base\ngit\nlinux\nneovim\n")
        (snapshot_root / "services/user-enabled.txt").write_text("pipewire.service\n")
        (snapshot_root / "configs/user/.bashrc").unlink()
        (snapshot_root / "configs/user/.zshrc").write_text("")
        newer = Snapshot.load(snapshot_root)

        delta = older.diff(newer)
        assert delta.packages_added == ["neovim"]
        assert delta.packages_removed == ["yay"]
        assert delta.services_removed == ["user:wireplumber.service"]
        assert delta.configs_added == ["user/.zshrc"]
        assert delta.configs_removed == ["user/.bashrc"]
        assert delta.total_differences == 5

    def test_diff_of_identical_trees_is_empty(self, snapshot_root: Path):
        assert Snapshot.load(snapshot_root).diff(Snapshot.load(snapshot_root)).total_differences == 0


class TestRestoreSelection:

    def test_menu_choices(self):
        assert RestoreSelection.from_choice(MenuChoice.EXIT) is None
        assert RestoreSelection.from_choice(MenuChoice.ALL).ordered() == list(RestoreCategory)
        only = RestoreSelection.from_choice(MenuChoice.USER_CONFIGS, dry_run=True)
        assert only.ordered() == [RestoreCategory.USER_CONFIGS]
        assert only.dry_run

    def test_ordered_follows_restore_order(self):
        selection = RestoreSelection.of(RestoreCategory.SERVICES, RestoreCategory.PACKAGES)
        assert selection.ordered() == [RestoreCategory.PACKAGES, RestoreCategory.SERVICES]


class TestRestoreReport:

    def test_attempted_excludes_skipped(self, tmp_path: Path):
        report = RestoreReport(root=tmp_path)
        report.record(RestoreCategory.SERVICES, "enable a", ActionStatus.EXECUTED)
        report.record(RestoreCategory.SERVICES, "enable b", ActionStatus.SKIPPED, error="excluded")
        report.record(RestoreCategory.SERVICES, "enable c", ActionStatus.FAILED, error="boom")

        assert report.attempted == ["enable a", "enable c"]
        assert [a.description for a in report.failed] == ["enable c"]
        assert len(report.for_category(RestoreCategory.SERVICES)) == 3
