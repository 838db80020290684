"""
Life Ledger - Source Package

Reconciles ceremonies, todos, schedules, ledger entries, bank transfers
and an external calendar feed into one de-duplicated per-day view.

DESIGN PRINCIPLES:
1. Every record has exactly one source of truth
2. External calendar entries are read-only
3. Data-quality problems degrade, they never crash a read
4. Write failures are reported, never silently rolled back
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Life Ledger Team"
