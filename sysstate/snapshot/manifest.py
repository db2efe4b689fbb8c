"""
Manifest generation.

The manifest is a pure function of the captured tree plus host metadata; it
never re-queries the live system, so it always agrees with the snapshot it
sits in.
"""

import getpass
import platform
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple

from .layout import SnapshotLayout, TIMESTAMP_PREFIX, list_files, read_list

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_COUNT_RE = re.compile(r"^- (Official|AUR|Total explicit): (\d+) packages$", re.MULTILINE)


@dataclass(frozen=True)
class HostMetadata:
    """Ambient facts recorded alongside a snapshot."""
    hostname: str
    user: str
    kernel: str
    timestamp: str

    @classmethod
    def collect(cls, user: Optional[str] = None, now: Optional[datetime] = None) -> 'HostMetadata':
        return cls(
            hostname=platform.node() or "unknown",
            user=user or getpass.getuser(),
            kernel=platform.release() or "unknown",
            timestamp=(now or datetime.now()).strftime(TIMESTAMP_FORMAT),
        )


@dataclass(frozen=True)
class Manifest:
    """Read-only summary of one snapshot."""
    metadata: HostMetadata
    official_count: int
    foreign_count: int
    explicit_count: int
    system_services: Tuple[str, ...]
    user_services: Tuple[str, ...]
    user_configs: Tuple[str, ...]
    system_configs: Tuple[str, ...]
    user_configs_total: int
    system_configs_total: int

    def render(self) -> str:
        m = self.metadata
        lines = [
            "# System State Backup Manifest",
            "",
            f"{TIMESTAMP_PREFIX} {m.timestamp}",
            f"**Hostname:** {m.hostname}",
            f"**User:** {m.user}",
            f"**Kernel:** {m.kernel}",
            "",
            "## Packages",
            "",
            f"- Official: {self.official_count} packages",
            f"- AUR: {self.foreign_count} packages",
            f"- Total explicit: {self.explicit_count} packages",
            "",
            "## Services Enabled",
            "",
        ]
        lines += _block("### System Services", self.system_services)
        lines += _block("### User Services", self.user_services)
        lines += ["## Configs Captured", ""]
        lines += _block("### User Configs", self.user_configs, self.user_configs_total)
        lines += _block("### System Configs", self.system_configs, self.system_configs_total)
        lines += [
            "## Restoration",
            "",
            "Run the restore command against this directory:",
            "```bash",
            "sysstate restore .",
            "```",
        ]
        return "\n".join(lines) + "\n"

    def write(self, layout: SnapshotLayout) -> bool:
        """
        Write MANIFEST.md unless only the timestamp would change.

        Returns True when the file was (re)written.
        """
        text = self.render()
        if layout.manifest.is_file():
            existing = layout.manifest.read_text(encoding="utf-8")
            if strip_timestamp(existing) == strip_timestamp(text):
                return False
        layout.manifest.write_text(text, encoding="utf-8")
        return True


def _block(title: str, items: Tuple[str, ...], total: Optional[int] = None) -> list:
    out = [title, "```", *items, "```"]
    if total is not None and total > len(items):
        out.append(f"... and {total - len(items)} more")
    out.append("")
    return out


def strip_timestamp(text: str) -> str:
    return "\n".join(ln for ln in text.splitlines() if not ln.startswith(TIMESTAMP_PREFIX))


def parse_counts(text: str) -> Dict[str, int]:
    """Package counts from a rendered manifest: {'Official': n, 'AUR': n, 'Total explicit': n}."""
    return {name: int(value) for name, value in _COUNT_RE.findall(text)}


class ManifestGenerator:
    """Builds a Manifest from what is on disk under a snapshot root."""

    FILE_LIMIT = 50

    def __init__(self, file_limit: int = FILE_LIMIT):
        self.file_limit = file_limit

    def generate(self, root, metadata: HostMetadata) -> Manifest:
        layout = SnapshotLayout(root)
        official = read_list(layout.official)
        foreign = read_list(layout.foreign)
        if layout.all_explicit.is_file():
            explicit_count = len(read_list(layout.all_explicit))
        else:
            explicit_count = len(official) + len(foreign)

        user_files = list_files(layout.user_configs)
        system_files = list_files(layout.system_configs)

        return Manifest(
            metadata=metadata,
            official_count=len(official),
            foreign_count=len(foreign),
            explicit_count=explicit_count,
            system_services=tuple(read_list(layout.system_enabled)),
            user_services=tuple(read_list(layout.user_enabled)),
            user_configs=tuple(user_files[:self.file_limit]),
            system_configs=tuple(system_files[:self.file_limit]),
            user_configs_total=len(user_files),
            system_configs_total=len(system_files),
        )
