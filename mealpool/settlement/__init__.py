"""Settlement engine: interim totals, final settlement and debt netting."""

from mealpool.settlement.final import compute_final_settlement
from mealpool.settlement.interim import compute_interim_totals
from mealpool.settlement.transfers import (
    compute_manager_transactions,
    compute_peer_transfers,
    residual_imbalance,
)

__all__ = [
    "compute_final_settlement",
    "compute_interim_totals",
    "compute_manager_transactions",
    "compute_peer_transfers",
    "residual_imbalance",
]
