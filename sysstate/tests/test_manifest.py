"""
Tests for manifest generation.
"""

from pathlib import Path

from sysstate.snapshot.capture import SnapshotCapture
from sysstate.snapshot.layout import SnapshotLayout
from sysstate.snapshot.manifest import ManifestGenerator, parse_counts, strip_timestamp
from sysstate.tests.mocks import HOST, LATER_HOST, fake_adapters


def test_package_counts_scenario(snapshot_root: Path):
    """Official: 3 / AUR: 1 / Total explicit: 4."""
    text = ManifestGenerator().generate(snapshot_root, HOST).render()

    assert "- Official: 3 packages" in text
    assert "- AUR: 1 packages" in text
    assert "- Total explicit: 4 packages" in text
    assert parse_counts(text) == {"Official": 3, "AUR": 1, "Total explicit": 4}


def test_counts_agree_with_captured_tree(tmp_path, catalog, home):
    root = tmp_path / "backup"
    SnapshotCapture(catalog, fake_adapters(), home).materialize(root)
    manifest = ManifestGenerator().generate(root, HOST)

    assert manifest.official_count + manifest.foreign_count == manifest.explicit_count == 4
    assert "NetworkManager.service" in manifest.system_services
    assert ".bashrc" in manifest.user_configs


def test_header_and_sections(snapshot_root: Path):
    text = ManifestGenerator().generate(snapshot_root, HOST).render()
    lines = text.splitlines()

    assert lines[0] == "# System State Backup Manifest"
    assert "**Last Updated:** 2024-05-01 10:00:00" in lines
    assert "**Hostname:** archbox" in lines
    assert "**Kernel:** 6.9.1-arch1-1" in lines
    for section in ("## Packages", "## Services Enabled", "### User Services", "## Configs Captured", "## Restoration"):
        assert section in lines


def test_deterministic(snapshot_root: Path):
    generator = ManifestGenerator()
    assert generator.generate(snapshot_root, HOST).render() == generator.generate(snapshot_root, HOST).render()


def test_never_requeries_live_state(snapshot_root: Path):
    """Only the tree matters: changing the tree changes the manifest."""
    before = ManifestGenerator().generate(snapshot_root, HOST)
    (snapshot_root / "packages/aur.txt").write_text("yay\nparu-bin\n")
    after = ManifestGenerator().generate(snapshot_root, HOST)

    assert before.foreign_count == 1
    assert after.foreign_count == 2


def test_file_list_is_truncated(snapshot_root: Path):
    for i in range(5):
        (snapshot_root / f"configs/user/.config/extra-{i}.conf").write_text("")
    manifest = ManifestGenerator(file_limit=3).generate(snapshot_root, HOST)

    assert len(manifest.user_configs) == 3
    assert manifest.user_configs_total > 3
    assert f"... and {manifest.user_configs_total - 3} more" in manifest.render()


def test_total_falls_back_to_sum_without_explicit_list(snapshot_root: Path):
    (snapshot_root / "packages/all-explicit.txt").unlink()
    manifest = ManifestGenerator().generate(snapshot_root, HOST)
    assert manifest.explicit_count == 4


class TestWrite:

    def test_write_creates_file(self, snapshot_root: Path):
        layout = SnapshotLayout(snapshot_root)
        layout.manifest.unlink()
        manifest = ManifestGenerator().generate(snapshot_root, HOST)

        assert manifest.write(layout) is True
        assert layout.manifest.read_text() == manifest.render()

    def test_timestamp_only_change_is_not_written(self, snapshot_root: Path):
        layout = SnapshotLayout(snapshot_root)
        ManifestGenerator().generate(snapshot_root, HOST).write(layout)
        first = layout.manifest.read_bytes()

        assert ManifestGenerator().generate(snapshot_root, LATER_HOST).write(layout) is False
        assert layout.manifest.read_bytes() == first

    def test_content_change_is_written(self, snapshot_root: Path):
        layout = SnapshotLayout(snapshot_root)
        ManifestGenerator().generate(snapshot_root, HOST).write(layout)
        (snapshot_root / "services/user-enabled.txt").write_text("pipewire.service\n")

        assert ManifestGenerator().generate(snapshot_root, LATER_HOST).write(layout) is True
        assert "2024-05-02 18:30:00" in layout.manifest.read_text()

    def test_strip_timestamp(self):
        assert strip_timestamp("a\n**Last Updated:** x\nb") == "a\nb"
