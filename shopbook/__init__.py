"""
Shopbook - Source Package

Bookkeeping for a small shop: sales, expenses, customers buying on
credit, the payments they make, and the totals the owner looks at
at the end of the day.

DESIGN PRINCIPLES:
1. Every balance change goes through the creditor ledger
2. Fail early, fail visibly
3. No silent corrections
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Shopbook Team"
