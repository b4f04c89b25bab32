"""
mealpool - shared-household meal settlement

Members deposit into a common pool, record meals and expenses, and at
month end the pool is reconciled into a per-member settlement.

DESIGN PRINCIPLES:
1. Money is exact decimal arithmetic, never binary floats
2. Calculations are pure functions of the records they are given
3. Rounded shares always add up to the total cost
4. Storage is swappable and never touched by the engine
"""

from mealpool.money import Money, MoneyParseError
from mealpool.settlement import compute_final_settlement, compute_interim_totals

__version__ = "1.0.0"

__all__ = [
    "Money",
    "MoneyParseError",
    "compute_final_settlement",
    "compute_interim_totals",
]
