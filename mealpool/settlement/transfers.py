"""
Debt Netting

Turns signed net positions into payments.

Two settlement styles are offered and kept separate, because they produce
different payment graphs:

PEER (compute_peer_transfers):
    Creditors and debtors are each sorted by size, largest first, and the
    largest debtor pays the largest creditor until one of them is square.
    With n members holding a non-zero balance this produces at most n - 1
    transfers. Amounts are exact; no rounding is applied.

MANAGER (compute_manager_transactions):
    Every member settles with the manager alone: positive nets are paid
    out by the manager, negative nets are paid in. Amounts are rounded to
    whole currency units.

If total deposits do not match total cost the nets do not sum to zero.
The peer matcher then leaves the excess unmatched; `residual_imbalance`
reports it as the amount the manager holds (positive) or is short.
"""

from dataclasses import dataclass
from typing import Sequence

from mealpool.models.results import (
    ManagerTransaction,
    ManagerTransactionType,
    MemberSettlement,
    Transfer,
)
from mealpool.money import Money, add_money


@dataclass
class _Balance:
    """Working remainder for one party while matching."""
    user_id: str
    name: str
    remaining: Money


def compute_peer_transfers(per_user: Sequence[MemberSettlement]) -> list[Transfer]:
    """
    Greedy largest-to-largest matching of debtors to creditors.

    Args:
        per_user: Final member positions (net > 0 is owed money)

    Returns:
        Transfers in the order they were matched
    """
    creditors = []
    debtors = []
    for member in per_user:
        net = Money(member.net)
        if net.is_positive():
            creditors.append(_Balance(member.user_id, member.name, net))
        elif net.is_negative():
            debtors.append(_Balance(member.user_id, member.name, -net))

    # sorted() is stable: equal balances keep member order
    creditors = sorted(creditors, key=lambda b: b.remaining.amount, reverse=True)
    debtors = sorted(debtors, key=lambda b: b.remaining.amount, reverse=True)

    transfers = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(debtor.remaining, creditor.remaining)
        transfers.append(Transfer(
            from_user_id=debtor.user_id,
            from_name=debtor.name,
            to_user_id=creditor.user_id,
            to_name=creditor.name,
            amount=amount.to_string(),
        ))

        debtor.remaining = debtor.remaining.subtract(amount)
        creditor.remaining = creditor.remaining.subtract(amount)

        if debtor.remaining.is_zero():
            i += 1
        if creditor.remaining.is_zero():
            j += 1

    return transfers


def compute_manager_transactions(
    per_user: Sequence[MemberSettlement],
) -> list[ManagerTransaction]:
    """
    One transaction per member with a non-zero net, against the manager.

    Sorted by amount, largest first.
    """
    transactions = []
    for member in per_user:
        net = Money(member.net)
        if net.is_positive():
            kind = ManagerTransactionType.RECEIVES
        elif net.is_negative():
            kind = ManagerTransactionType.OWES
        else:
            continue

        transactions.append(ManagerTransaction(
            user_id=member.user_id,
            user_name=member.name,
            type=kind,
            amount=abs(net).round().to_string(),
        ))

    return sorted(transactions, key=lambda t: Money(t.amount).amount, reverse=True)


def residual_imbalance(per_user: Sequence[MemberSettlement]) -> Money:
    """Sum of all nets; zero when deposits exactly cover the cost."""
    return add_money(member.net for member in per_user)
