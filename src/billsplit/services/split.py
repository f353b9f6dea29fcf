from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import AbstractSet, Callable, Iterable, Optional, Sequence

from billsplit.config import Settings, get_settings
from billsplit.models import (
    ByItemSplit,
    ByPersonSplit,
    CustomAmountSplit,
    CustomerItemsSplit,
    EqualSplit,
    ItemShare,
    OrderContext,
    OrderLineItem,
    Participant,
    PercentageSplit,
    RoundTo,
    SharedItemsSplit,
    SplitConfig,
    SplitMethod,
    SplitResult,
)
from billsplit.services.assignment import item_claims, resolve_quantity, unassigned_items
from billsplit.services.money import allocate, decompose, round_to_unit, split_evenly
from billsplit.services.validation import VALIDATORS

ALL_METHODS: frozenset[SplitMethod] = frozenset(SplitMethod)
SIMPLIFIED_METHODS: frozenset[SplitMethod] = frozenset({SplitMethod.EQUAL, SplitMethod.CUSTOM_AMOUNT})

ROUNDING_UNITS = {
    RoundTo.CENT: 1,
    RoundTo.DOLLAR: 100,
}


@dataclass(slots=True)
class _Draft:
    """Per-call accumulator for one participant's pre-tax share."""

    person_id: str
    person_name: str
    amount_cents: int = 0
    items: list[ItemShare] = field(default_factory=list)
    member_ids: Sequence[str] = ()
    payment_method: Optional[str] = None

    def add(self, share: ItemShare) -> None:
        self.items.append(share)
        self.amount_cents += share.total_cents


def _draft_for(drafts: dict[str, _Draft], person_id: str) -> _Draft:
    if person_id not in drafts:
        drafts[person_id] = _Draft(person_id=person_id, person_name=person_id)
    return drafts[person_id]


def _item_share(item: OrderLineItem, quantity: Decimal, total_cents: int) -> ItemShare:
    return ItemShare(
        item_id=item.id,
        item_name=item.menu_item_name,
        quantity=quantity,
        unit_price_cents=item.unit_total_cents,
        total_cents=total_cents,
    )


def _participant(draft: _Draft, amount: int, tax: int, tip: int) -> Participant:
    return Participant(
        person_id=draft.person_id,
        person_name=draft.person_name,
        amount_cents=amount,
        tax_cents=tax,
        tip_cents=tip,
        items=tuple(draft.items),
        member_ids=tuple(draft.member_ids),
        payment_method=draft.payment_method,
    )


def _with_proportional_tax_tip(drafts: Sequence[_Draft], order: OrderContext, include: bool) -> list[Participant]:
    """Spread tax and tip over participants by their share of the subtotal."""
    if not drafts:
        return []
    amounts = [draft.amount_cents for draft in drafts]
    if include:
        taxes = allocate(order.tax_cents, amounts)
        tips = allocate(order.tip_cents, amounts)
    else:
        taxes = [0] * len(drafts)
        tips = [0] * len(drafts)
    return [_participant(d, amount, tax, tip) for d, amount, tax, tip in zip(drafts, amounts, taxes, tips)]


def _from_totals(drafts: Sequence[_Draft], totals: Sequence[int], order: OrderContext, include: bool) -> list[Participant]:
    """Break each participant's all-in total into amount, tax and tip."""
    if include:
        parts = decompose(totals, order.tax_cents, order.tip_cents)
    else:
        parts = [(total, 0, 0) for total in totals]
    return [_participant(d, amount, tax, tip) for d, (amount, tax, tip) in zip(drafts, parts)]


def _spread_with_remainder(total: int, exact: Sequence[Decimal], unit: int) -> list[int]:
    """Round all but the last share to ``unit``; the last one absorbs the drift."""
    for rounding in (ROUND_HALF_UP, ROUND_FLOOR):
        head = [round_to_unit(value, unit, rounding) for value in exact[:-1]]
        shares = head + [total - sum(head)]
        if shares[-1] >= 0:
            return shares
    return allocate(total, exact)


def calculate_equal(config: EqualSplit, order: OrderContext) -> list[Participant]:
    people = config.number_of_people
    total = order.expected_total(config.include_tax_tips)
    unit = ROUNDING_UNITS[RoundTo(config.round_to)]
    totals = _spread_with_remainder(total, [Decimal(total) / people] * people, unit)
    drafts = [_Draft(person_id=f"person_{i}", person_name=f"Person {i}") for i in range(1, people + 1)]
    return _from_totals(drafts, totals, order, config.include_tax_tips)


def calculate_custom_amount(config: CustomAmountSplit, order: OrderContext) -> list[Participant]:
    drafts = [
        _Draft(
            person_id=f"person_{i}",
            person_name=allocation.person_name.strip() or f"Person {i}",
        )
        for i, allocation in enumerate(config.allocations, start=1)
    ]
    totals = [allocation.amount_cents for allocation in config.allocations]
    return _from_totals(drafts, totals, order, config.include_tax_tips)


def calculate_percentage(config: PercentageSplit, order: OrderContext) -> list[Participant]:
    total = order.expected_total(config.include_tax_tips)
    unit = ROUNDING_UNITS[RoundTo(config.round_to)]
    exact = [Decimal(total) * Decimal(str(a.percentage)) / 100 for a in config.allocations]
    totals = _spread_with_remainder(total, exact, unit)
    drafts = [_Draft(person_id=a.person_id, person_name=a.person_id) for a in config.allocations]
    return _from_totals(drafts, totals, order, config.include_tax_tips)


def calculate_by_item(config: ByItemSplit, order: OrderContext) -> list[Participant]:
    items_by_id = order.items_by_id
    drafts: dict[str, _Draft] = {}
    for assignment in config.assignments:
        item = items_by_id[assignment.item_id]
        quantity = resolve_quantity(assignment.quantity, item)
        share = _item_share(item, Decimal(quantity), quantity * item.unit_total_cents)
        _draft_for(drafts, assignment.person_id).add(share)
    return _with_proportional_tax_tip(list(drafts.values()), order, config.include_tax_tips)


def calculate_by_person(config: ByPersonSplit, order: OrderContext) -> list[Participant]:
    items_by_id = order.items_by_id
    drafts: list[_Draft] = []
    for bill in config.bills:
        draft = _Draft(
            person_id=bill.id,
            person_name=", ".join(bill.person_ids),
            member_ids=tuple(bill.person_ids),
        )
        for item_id, quantity in bill.item_quantities.items():
            if quantity == 0:
                continue
            item = items_by_id[item_id]
            draft.add(_item_share(item, Decimal(quantity), quantity * item.unit_total_cents))
        if bill.custom_amount_cents is not None:
            draft.amount_cents = bill.custom_amount_cents
        drafts.append(draft)
    return _with_proportional_tax_tip(drafts, order, config.include_tax_tips)


def calculate_shared_items(config: SharedItemsSplit, order: OrderContext) -> list[Participant]:
    items_by_id = order.items_by_id
    drafts: dict[str, _Draft] = {}
    for shared in config.shared_items:
        item = items_by_id[shared.item_id]
        quantity = resolve_quantity(shared.quantity, item)
        per_head = Decimal(quantity) / len(shared.person_ids)
        shares = split_evenly(quantity * item.unit_total_cents, len(shared.person_ids))
        for person_id, cents in zip(shared.person_ids, shares):
            _draft_for(drafts, person_id).add(_item_share(item, per_head, cents))
    for individual in config.individual_items:
        item = items_by_id[individual.item_id]
        quantity = resolve_quantity(individual.quantity, item)
        share = _item_share(item, Decimal(quantity), quantity * item.unit_total_cents)
        _draft_for(drafts, individual.person_id).add(share)
    return _with_proportional_tax_tip(list(drafts.values()), order, config.include_tax_tips)


def calculate_customer_items(config: CustomerItemsSplit, order: OrderContext) -> list[Participant]:
    items_by_id = order.items_by_id
    drafts: list[_Draft] = []
    for i, assignment in enumerate(config.assignments, start=1):
        draft = _Draft(
            person_id=f"customer_{i}",
            person_name=assignment.customer_name.strip() or f"Customer {i}",
            payment_method=assignment.payment_method,
        )
        for assigned in assignment.items:
            item = items_by_id[assigned.order_item_id]
            draft.add(_item_share(item, Decimal(assigned.quantity), assigned.quantity * item.unit_total_cents))
        drafts.append(draft)
    return _with_proportional_tax_tip(drafts, order, config.include_tax_tips)


Strategy = Callable[[SplitConfig, OrderContext], list[Participant]]

STRATEGIES: dict[SplitMethod, Strategy] = {
    SplitMethod.EQUAL: calculate_equal,
    SplitMethod.BY_ITEM: calculate_by_item,
    SplitMethod.BY_PERSON: calculate_by_person,
    SplitMethod.PERCENTAGE: calculate_percentage,
    SplitMethod.CUSTOM_AMOUNT: calculate_custom_amount,
    SplitMethod.SHARED_ITEMS: calculate_shared_items,
    SplitMethod.CUSTOMER_ITEMS: calculate_customer_items,
}

_unhandled = (ALL_METHODS - set(STRATEGIES)) | (ALL_METHODS - set(VALIDATORS))
if _unhandled:
    raise RuntimeError(f"split methods without a handler: {sorted(m.value for m in _unhandled)}")


class SplitBillCalculator:
    """Splits one order's bill under any of the supported strategies.

    The order context is fixed at construction; ``calculate`` is a pure
    function of it and the config, so previews can call it freely.
    """

    def __init__(
        self,
        order_items: Iterable[OrderLineItem],
        subtotal_cents: int,
        tax_cents: int,
        tip_cents: int = 0,
        *,
        methods: AbstractSet[SplitMethod] = ALL_METHODS,
        settings: Settings | None = None,
    ) -> None:
        self._order = OrderContext(
            items=tuple(order_items),
            subtotal_cents=subtotal_cents,
            tax_cents=tax_cents,
            tip_cents=tip_cents,
        )
        self._methods = frozenset(methods)
        self._settings = settings or get_settings()

    @property
    def order(self) -> OrderContext:
        return self._order

    @property
    def methods(self) -> frozenset[SplitMethod]:
        return self._methods

    def calculate(self, config: SplitConfig) -> SplitResult:
        method = getattr(config, "method", None)
        if method not in self._methods:
            return SplitResult.invalid("Unsupported split method")

        error = self._check_totals() or VALIDATORS[method](config, self._order, self._settings)
        if error:
            return SplitResult.invalid(error)

        participants = STRATEGIES[method](config, self._order)
        return SplitResult.from_participants(participants)

    def unassigned_items(self, config: SplitConfig) -> list[OrderLineItem]:
        """Order items (with remaining quantities) that ``config`` leaves unclaimed."""
        claims = item_claims(config, self._order.items_by_id)
        return unassigned_items(self._order.items, claims)

    def all_items_assigned(self, config: SplitConfig) -> bool:
        return not self.unassigned_items(config)

    def _check_totals(self) -> Optional[str]:
        if self._order.subtotal_cents < 0:
            return "Subtotal must be non-negative"
        if self._order.tax_cents < 0 or self._order.tip_cents < 0:
            return "Tax and tip amounts must be non-negative"
        for item in self._order.items:
            if item.unit_price_cents < 0 or any(m.price_cents < 0 for m in item.modifiers):
                return f"Price of item {item.menu_item_name} must be non-negative"
            if not isinstance(item.quantity, int) or item.quantity < 1:
                return f"Quantity of item {item.menu_item_name} must be at least 1"
        return None
