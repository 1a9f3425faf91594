"""
Balance Calculator

Pure functions from a Group to derived views. Nothing here mutates or
persists anything.

DESIGN DECISION: Equal-split policy only. Every member owes the same
share of the group total, whether or not they took part in a given
expense. There are no per-expense participant subsets.

No rounding happens at this layer; amounts are formatted to 2 decimal
places only for display. "Settled" means within an epsilon of zero.
"""

from splitsync.models.ledger import (
    Balance,
    BalanceStatus,
    ExpenseCategory,
    Group,
    Settlement,
)


DEFAULT_EPSILON = 0.01


def group_total(group: Group) -> float:
    """Sum of every expense amount in the group."""
    return sum(expense.amount for expense in group.expenses)


def share_per_person(group: Group) -> float:
    """Equal share of the group total; 0 when the group has no people."""
    if group.person_count == 0:
        return 0.0
    return group_total(group) / group.person_count


def compute_balances(group: Group) -> list[Balance]:
    """
    One Balance per Person, in group order.

    paid  = sum of expenses the person paid for
    share = group total / number of people (0 if nobody is in the group)
    net   = paid - share
    """
    share = share_per_person(group)

    paid_by: dict[str, float] = {}
    for expense in group.expenses:
        paid_by[expense.paid_by_id] = paid_by.get(expense.paid_by_id, 0.0) + expense.amount

    return [
        Balance(
            person_id=person.id,
            paid=paid_by.get(person.id, 0.0),
            share=share,
            net=paid_by.get(person.id, 0.0) - share,
        )
        for person in group.people
    ]


def is_settled(net: float, epsilon: float = DEFAULT_EPSILON) -> bool:
    """True when a net position is close enough to zero to display as settled."""
    return abs(net) < epsilon


def balance_status(
    balance: Balance,
    epsilon: float = DEFAULT_EPSILON,
) -> BalanceStatus:
    if is_settled(balance.net, epsilon):
        return BalanceStatus.SETTLED
    return BalanceStatus.OWED if balance.net > 0 else BalanceStatus.OWES


def suggest_settlements(
    group: Group,
    epsilon: float = DEFAULT_EPSILON,
) -> list[Settlement]:
    """
    Transfers that bring every member to settled.

    Greedy: the largest debtor pays the largest creditor as much as
    either side allows, repeated until no one is outside epsilon.
    Produces at most (people - 1) transfers.
    """
    balances = compute_balances(group)

    debtors = [[b.person_id, -b.net] for b in balances if b.net <= -epsilon]
    creditors = [[b.person_id, b.net] for b in balances if b.net >= epsilon]
    debtors.sort(key=lambda d: d[1], reverse=True)
    creditors.sort(key=lambda c: c[1], reverse=True)

    settlements = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(debtor[1], creditor[1])
        if amount >= epsilon:
            settlements.append(Settlement(
                from_person_id=debtor[0],
                to_person_id=creditor[0],
                amount=amount,
            ))

        debtor[1] -= amount
        creditor[1] -= amount
        if debtor[1] < epsilon:
            i += 1
        if creditor[1] < epsilon:
            j += 1

    return settlements


def category_totals(group: Group) -> dict[ExpenseCategory, float]:
    """Spending per category; every category is present, unused ones at 0."""
    totals = {category: 0.0 for category in ExpenseCategory}
    for expense in group.expenses:
        totals[expense.category] += expense.amount
    return totals
