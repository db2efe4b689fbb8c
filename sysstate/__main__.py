"""
Entry point for running sysstate as a module.

Usage:
    python -m sysstate capture
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
