"""Per-strategy checks run before any split is calculated.

Every validator returns ``None`` when the configuration is usable, or a
human-readable reason otherwise. Nothing here raises for a bad
configuration; the calculator turns the reason into an invalid result.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Mapping, Optional

from billsplit.config import Settings
from billsplit.models import (
    ByItemSplit,
    ByPersonSplit,
    CustomAmountSplit,
    CustomerItemsSplit,
    EqualSplit,
    OrderContext,
    OrderLineItem,
    PercentageSplit,
    RoundTo,
    SharedItemsSplit,
    SplitConfig,
    SplitMethod,
)
from billsplit.services.assignment import ItemClaim, assigned_quantities, item_claims, resolve_quantity
from billsplit.services.money import format_cents

Validator = Callable[[SplitConfig, OrderContext, Settings], Optional[str]]

HUNDRED = Decimal(100)


def _is_whole(value: object, minimum: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= minimum


def _valid_round_to(value: object) -> bool:
    try:
        RoundTo(value)
    except ValueError:
        return False
    return True


def _over_assigned(claims: Iterable[ItemClaim], items_by_id: Mapping[str, OrderLineItem]) -> Optional[str]:
    for item_id, count in assigned_quantities(claims).items():
        item = items_by_id[item_id]
        if count > item.quantity:
            return f"Item {item.menu_item_name} assigned {count} times but only {item.quantity} available"
    return None


def _check_item_reference(
    item_id: str,
    quantity: Optional[int],
    items_by_id: Mapping[str, OrderLineItem],
    minimum: int = 1,
    optional: bool = True,
) -> Optional[str]:
    item = items_by_id.get(item_id)
    if item is None:
        return f"Assigned item {item_id} not found in order"
    if quantity is None and not optional:
        return f"Invalid quantity for item {item.menu_item_name}"
    if not _is_whole(resolve_quantity(quantity, item), minimum):
        return f"Invalid quantity for item {item.menu_item_name}"
    return None


def validate_equal(config: EqualSplit, order: OrderContext, settings: Settings) -> Optional[str]:
    people = config.number_of_people
    if isinstance(people, bool) or not isinstance(people, int):
        return "Number of people must be a whole number"
    if people <= 0:
        return "Number of people must be greater than 0"
    if people > settings.max_people:
        return f"Number of people cannot exceed {settings.max_people}"
    if not _valid_round_to(config.round_to):
        return "Rounding must be to the cent or to the dollar"
    return None


def validate_custom_amount(config: CustomAmountSplit, order: OrderContext, settings: Settings) -> Optional[str]:
    allocations = config.allocations
    if not allocations:
        return "At least one person must be added"
    if len(allocations) > settings.max_people:
        return f"Cannot have more than {settings.max_people} people"

    total = 0
    for allocation in allocations:
        # A blank name is fine, it gets a generated "Person N" label.
        if allocation.person_name and len(allocation.person_name.strip()) > settings.max_name_length:
            return f"Person names cannot exceed {settings.max_name_length} characters"
        if not _is_whole(allocation.amount_cents, 0):
            return "Amounts must be non-negative numbers"
        if allocation.amount_cents > settings.max_custom_amount_cents:
            return f"Individual amounts cannot exceed {format_cents(settings.max_custom_amount_cents)}"
        total += allocation.amount_cents

    expected = order.expected_total(config.include_tax_tips)
    if total != expected:
        return f"Total amounts ({format_cents(total)}) must equal the bill total ({format_cents(expected)})"
    return None


def validate_percentage(config: PercentageSplit, order: OrderContext, settings: Settings) -> Optional[str]:
    allocations = config.allocations
    if not allocations:
        return "At least one person must be added"
    if len(allocations) > settings.max_people:
        return f"Cannot have more than {settings.max_people} people"
    if not _valid_round_to(config.round_to):
        return "Rounding must be to the cent or to the dollar"

    total = Decimal(0)
    for allocation in allocations:
        try:
            percentage = Decimal(str(allocation.percentage))
        except InvalidOperation:
            return "Percentages must be numbers"
        if not percentage.is_finite() or percentage < 0 or percentage > HUNDRED:
            return "Percentages must be between 0 and 100"
        total += percentage

    if abs(total - HUNDRED) > settings.percentage_tolerance:
        return f"Percentages must sum to 100% (currently {total:.2f}%)"
    return None


def validate_by_item(config: ByItemSplit, order: OrderContext, settings: Settings) -> Optional[str]:
    if not config.assignments:
        return "At least one item must be assigned"

    items_by_id = order.items_by_id
    for assignment in config.assignments:
        if not assignment.person_id:
            return "Every assigned item needs a person"
        error = _check_item_reference(assignment.item_id, assignment.quantity, items_by_id)
        if error:
            return error

    claims = item_claims(config, items_by_id)
    error = _over_assigned(claims, items_by_id)
    if error:
        return error

    assigned_value = sum(quantity * items_by_id[item_id].unit_total_cents for item_id, quantity in claims)
    if assigned_value != order.subtotal_cents:
        return "Not all items have been assigned"
    return None


def validate_by_person(config: ByPersonSplit, order: OrderContext, settings: Settings) -> Optional[str]:
    if not config.bills:
        return "At least one bill must be added"
    if len(config.bills) > settings.max_people:
        return f"Cannot have more than {settings.max_people} bills"

    items_by_id = order.items_by_id
    total = 0
    for bill in config.bills:
        if not bill.person_ids:
            return f"Bill {bill.id} must include at least one person"
        bill_amount = 0
        for item_id, quantity in bill.item_quantities.items():
            error = _check_item_reference(item_id, quantity, items_by_id, minimum=0, optional=False)
            if error:
                return error
            bill_amount += quantity * items_by_id[item_id].unit_total_cents
        if bill.custom_amount_cents is not None:
            if not _is_whole(bill.custom_amount_cents, 0):
                return "Amounts must be non-negative numbers"
            bill_amount = bill.custom_amount_cents
        total += bill_amount

    error = _over_assigned(item_claims(config, items_by_id), items_by_id)
    if error:
        return error

    if total != order.subtotal_cents:
        return f"Total amount ({format_cents(total)}) doesn't match expected ({format_cents(order.subtotal_cents)})"
    return None


def validate_shared_items(config: SharedItemsSplit, order: OrderContext, settings: Settings) -> Optional[str]:
    if not config.shared_items and not config.individual_items:
        return "At least one item must be assigned"

    items_by_id = order.items_by_id
    for shared in config.shared_items:
        error = _check_item_reference(shared.item_id, shared.quantity, items_by_id)
        if error:
            return error
        if not shared.person_ids:
            return f"Shared item {items_by_id[shared.item_id].menu_item_name} needs at least one person"
        if not all(shared.person_ids):
            return "Every assigned item needs a person"
        if len(set(shared.person_ids)) != len(shared.person_ids):
            return f"Shared item {items_by_id[shared.item_id].menu_item_name} lists a person more than once"
    for individual in config.individual_items:
        if not individual.person_id:
            return "Every assigned item needs a person"
        error = _check_item_reference(individual.item_id, individual.quantity, items_by_id)
        if error:
            return error

    claims = item_claims(config, items_by_id)
    error = _over_assigned(claims, items_by_id)
    if error:
        return error

    assigned_value = sum(quantity * items_by_id[item_id].unit_total_cents for item_id, quantity in claims)
    if assigned_value != order.subtotal_cents:
        return "Not all items have been properly assigned"
    return None


def validate_customer_items(config: CustomerItemsSplit, order: OrderContext, settings: Settings) -> Optional[str]:
    assignments = config.assignments
    if not assignments:
        return "At least one customer assignment is required"
    if len(assignments) > settings.max_customer_assignments:
        return f"Cannot have more than {settings.max_customer_assignments} customer assignments"

    items_by_id = order.items_by_id
    for assignment in assignments:
        if assignment.customer_name and len(assignment.customer_name.strip()) > settings.max_name_length:
            return f"Customer names cannot exceed {settings.max_name_length} characters"
        for item in assignment.items:
            error = _check_item_reference(item.order_item_id, item.quantity, items_by_id, optional=False)
            if error:
                return error
            if item.quantity > items_by_id[item.order_item_id].quantity:
                return f"Invalid quantity for item {items_by_id[item.order_item_id].menu_item_name}"

    claims = item_claims(config, items_by_id)
    error = _over_assigned(claims, items_by_id)
    if error:
        return error

    assigned = assigned_quantities(claims)
    if any(assigned.get(item.id, 0) < item.quantity for item in order.items):
        return "Not all items have been assigned"
    return None


VALIDATORS: dict[SplitMethod, Validator] = {
    SplitMethod.EQUAL: validate_equal,
    SplitMethod.BY_ITEM: validate_by_item,
    SplitMethod.BY_PERSON: validate_by_person,
    SplitMethod.PERCENTAGE: validate_percentage,
    SplitMethod.CUSTOM_AMOUNT: validate_custom_amount,
    SplitMethod.SHARED_ITEMS: validate_shared_items,
    SplitMethod.CUSTOMER_ITEMS: validate_customer_items,
}
