"""
Money Manager - Source Package

A personal finance ledger: records income and expense entries,
persists them, and derives filtered views and summaries.

DESIGN PRINCIPLES:
1. Validate at the boundary, trust inside
2. In-memory state is the source of truth
3. Persistence is best-effort and never blocks the user
4. Views are derived, never stored
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Money Manager Team"
