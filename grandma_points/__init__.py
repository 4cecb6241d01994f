"""
Grandma Points - Source Package

A small tracker for children's allowance-style points.
A caregiver records priced line items per child, grouped by day,
with running totals.

DESIGN PRINCIPLES:
1. Every mutation is saved immediately, as a whole collection
2. Corrupt or missing data means "no data", never a crash
3. Derived values (groups, totals) are recomputed on every read
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Grandma Points Team"
