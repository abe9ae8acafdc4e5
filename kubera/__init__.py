"""
Kubera - Ledger Core

The finance logic behind the Kubera expense and net worth tracker:
expenses, assets, debts and a stock portfolio kept in one local document,
with the dashboard figures derived from it.

DESIGN PRINCIPLES:
1. One document, always read and written whole
2. One writer at a time
3. Derived numbers are never stored
4. Bad input is rejected, never silently corrected
5. Storage and price sources are swappable
"""

__version__ = "1.0.0"
__author__ = "Kubera Team"
