#!/usr/bin/env python3
"""Power position service CLI entry point.

Runs the long-lived daily extraction service, or a single catch-up drain
with ``--once``.

Usage::

    python scripts/run_service.py
    python scripts/run_service.py --once
    python scripts/run_service.py --once --log-level DEBUG
"""

import sys
from pathlib import Path

# Ensure project root is on sys.path so ``power_position.*`` imports work when
# this script is invoked directly (e.g. ``python scripts/run_service.py``).
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from power_position.service.main import main


if __name__ == "__main__":
    sys.exit(main())
