from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping, Optional, Sequence

from billsplit.models import (
    ByItemSplit,
    ByPersonSplit,
    CustomerItemsSplit,
    OrderLineItem,
    SharedItemsSplit,
    SplitConfig,
)

ItemClaim = tuple[str, int]


def resolve_quantity(quantity: Optional[int], item: Optional[OrderLineItem]) -> int:
    """An omitted quantity claims every unit of the line item."""
    if quantity is not None:
        return quantity
    return item.quantity if item is not None else 0


def item_claims(config: SplitConfig, items_by_id: Mapping[str, OrderLineItem]) -> list[ItemClaim]:
    """List the (item id, quantity) pairs a configuration hands out.

    Strategies that do not assign items claim nothing.
    """
    if isinstance(config, ByItemSplit):
        return [
            (assignment.item_id, resolve_quantity(assignment.quantity, items_by_id.get(assignment.item_id)))
            for assignment in config.assignments
        ]
    if isinstance(config, ByPersonSplit):
        return [
            (item_id, quantity)
            for bill in config.bills
            for item_id, quantity in bill.item_quantities.items()
        ]
    if isinstance(config, SharedItemsSplit):
        claims = [
            (shared.item_id, resolve_quantity(shared.quantity, items_by_id.get(shared.item_id)))
            for shared in config.shared_items
        ]
        claims.extend(
            (individual.item_id, resolve_quantity(individual.quantity, items_by_id.get(individual.item_id)))
            for individual in config.individual_items
        )
        return claims
    if isinstance(config, CustomerItemsSplit):
        return [
            (item.order_item_id, item.quantity)
            for assignment in config.assignments
            for item in assignment.items
        ]
    return []


def assigned_quantities(claims: Iterable[ItemClaim]) -> dict[str, int]:
    result: dict[str, int] = {}
    for item_id, quantity in claims:
        result[item_id] = result.get(item_id, 0) + quantity
    return result


def unassigned_items(order_items: Sequence[OrderLineItem], claims: Iterable[ItemClaim]) -> list[OrderLineItem]:
    """Order items with the quantity still left after ``claims``."""
    assigned = assigned_quantities(claims)
    remaining: list[OrderLineItem] = []
    for item in order_items:
        left = item.quantity - assigned.get(item.id, 0)
        if left > 0:
            remaining.append(replace(item, quantity=left))
    return remaining


def all_items_assigned(order_items: Sequence[OrderLineItem], claims: Iterable[ItemClaim]) -> bool:
    return not unassigned_items(order_items, claims)
