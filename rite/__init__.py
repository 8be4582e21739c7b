"""
RITE package
============

This package contains the Roster Intelligence Timeline Engine (RITE).

- The CLI entry point is in `rite/cli.py`.
- Snapshot pairing and merging are in `rite/pairing.py` and `rite/merge.py`.
- The timeline engine (per-date groups, series, exports) is in `rite/engine.py`.
"""

__version__ = '0.3.0'
