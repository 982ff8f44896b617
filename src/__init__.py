"""
Task & Budget Tracker - Source Package

A personal task list and budget ledger that stays in sync with a per-user
document store in realtime.

DESIGN PRINCIPLES:
1. No data access before the identity is ready
2. The store is the source of truth; the UI only shows what it echoes back
3. Fail visibly, never retry behind the user's back
4. Every step must be auditable
5. Storage, auth, voice and audio backends are swappable
"""

__version__ = "1.0.0"
__author__ = "Task & Budget Tracker Team"
