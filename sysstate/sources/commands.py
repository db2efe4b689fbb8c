"""
Subprocess helpers shared by the source adapters.
"""

import shlex
import shutil
import subprocess
from typing import List, Optional, Sequence, Tuple

from ..errors import SourceError


def which(cmd: str) -> bool:
    return shutil.which(cmd) is not None


def run_capture(cmd: Sequence[str], input_text: Optional[str] = None) -> Tuple[int, str, str]:
    """Run a command and return (returncode, stdout, stderr). Missing binary -> 127."""
    try:
        p = subprocess.run(
            list(cmd),
            input=input_text,
            capture_output=True,
            text=True,
        )
        return p.returncode, p.stdout, p.stderr
    except FileNotFoundError:
        return 127, "", f"Command not found: {cmd[0]}"


def format_command(cmd: Sequence[str]) -> str:
    """Shell-quoted rendering used in announcements and manual instructions."""
    return " ".join(shlex.quote(c) for c in cmd)


def lines(output: str) -> List[str]:
    """Non-empty stripped lines of command output."""
    return [ln.strip() for ln in output.splitlines() if ln.strip()]


class CommandRunner:
    """Runs external commands, raising SourceError on failure."""

    def available(self, name: str) -> bool:
        return which(name)

    def run(self, cmd: Sequence[str], input_text: Optional[str] = None) -> str:
        rc, out, err = run_capture(cmd, input_text=input_text)
        if rc != 0:
            raise SourceError(
                f"'{format_command(cmd)}' exited with {rc}: {(err or out).strip()}",
                command=list(cmd),
                output=out + err,
            )
        return out
