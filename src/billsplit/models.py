from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Mapping, Optional, Sequence, Union

from billsplit.services.money import from_cents

_QUANTITY_PLACES = Decimal("0.0001")


class SplitMethod(str, Enum):
    EQUAL = "equal"
    BY_ITEM = "by_item"
    BY_PERSON = "by_person"
    PERCENTAGE = "percentage"
    CUSTOM_AMOUNT = "custom_amount"
    SHARED_ITEMS = "shared_items"
    CUSTOMER_ITEMS = "customer_items"


class RoundTo(str, Enum):
    CENT = "cent"
    DOLLAR = "dollar"


@dataclass(frozen=True, slots=True)
class Modifier:
    id: str
    name: str
    price_cents: int = 0


@dataclass(frozen=True, slots=True)
class OrderLineItem:
    id: str
    menu_item_id: str
    menu_item_name: str
    unit_price_cents: int
    quantity: int = 1
    modifiers: Sequence[Modifier] = ()
    notes: Optional[str] = None

    @property
    def unit_total_cents(self) -> int:
        """Price of one unit with its modifiers applied."""
        return self.unit_price_cents + sum(modifier.price_cents for modifier in self.modifiers)

    @property
    def line_total_cents(self) -> int:
        return self.unit_total_cents * self.quantity


@dataclass(frozen=True, slots=True)
class OrderContext:
    items: Sequence[OrderLineItem]
    subtotal_cents: int
    tax_cents: int
    tip_cents: int = 0

    @property
    def items_by_id(self) -> dict[str, OrderLineItem]:
        return {item.id: item for item in self.items}

    def expected_total(self, include_tax_tips: bool) -> int:
        if include_tax_tips:
            return self.subtotal_cents + self.tax_cents + self.tip_cents
        return self.subtotal_cents


# Split configurations. Each variant carries its tag as a class attribute so
# the calculator can dispatch on ``config.method``.


@dataclass(frozen=True, slots=True)
class EqualSplit:
    method: ClassVar[SplitMethod] = SplitMethod.EQUAL

    number_of_people: int
    round_to: RoundTo = RoundTo.CENT
    include_tax_tips: bool = True


@dataclass(frozen=True, slots=True)
class ItemAssignment:
    item_id: str
    person_id: str
    quantity: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ByItemSplit:
    method: ClassVar[SplitMethod] = SplitMethod.BY_ITEM

    assignments: Sequence[ItemAssignment]
    include_tax_tips: bool = True


@dataclass(frozen=True, slots=True)
class PersonBill:
    id: str
    person_ids: Sequence[str]
    item_quantities: Mapping[str, int] = field(default_factory=dict)
    custom_amount_cents: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ByPersonSplit:
    method: ClassVar[SplitMethod] = SplitMethod.BY_PERSON

    bills: Sequence[PersonBill]
    include_tax_tips: bool = True


@dataclass(frozen=True, slots=True)
class PercentageAllocation:
    person_id: str
    percentage: Decimal


@dataclass(frozen=True, slots=True)
class PercentageSplit:
    method: ClassVar[SplitMethod] = SplitMethod.PERCENTAGE

    allocations: Sequence[PercentageAllocation]
    round_to: RoundTo = RoundTo.CENT
    include_tax_tips: bool = True


@dataclass(frozen=True, slots=True)
class CustomAllocation:
    person_name: str
    amount_cents: int


@dataclass(frozen=True, slots=True)
class CustomAmountSplit:
    method: ClassVar[SplitMethod] = SplitMethod.CUSTOM_AMOUNT

    allocations: Sequence[CustomAllocation]
    include_tax_tips: bool = True


@dataclass(frozen=True, slots=True)
class SharedItem:
    item_id: str
    person_ids: Sequence[str]
    quantity: Optional[int] = None


@dataclass(frozen=True, slots=True)
class SharedItemsSplit:
    method: ClassVar[SplitMethod] = SplitMethod.SHARED_ITEMS

    shared_items: Sequence[SharedItem] = ()
    individual_items: Sequence[ItemAssignment] = ()
    include_tax_tips: bool = True


@dataclass(frozen=True, slots=True)
class CustomerItem:
    order_item_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class CustomerAssignment:
    customer_name: str = ""
    items: Sequence[CustomerItem] = ()
    payment_method: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CustomerItemsSplit:
    method: ClassVar[SplitMethod] = SplitMethod.CUSTOMER_ITEMS

    assignments: Sequence[CustomerAssignment]
    include_tax_tips: bool = True


SplitConfig = Union[
    EqualSplit,
    ByItemSplit,
    ByPersonSplit,
    PercentageSplit,
    CustomAmountSplit,
    SharedItemsSplit,
    CustomerItemsSplit,
]


# Results


@dataclass(frozen=True, slots=True)
class ItemShare:
    item_id: str
    item_name: str
    quantity: Decimal
    unit_price_cents: int
    total_cents: int

    def to_dict(self) -> dict[str, object]:
        return {
            "itemId": self.item_id,
            "itemName": self.item_name,
            "quantity": f"{self.quantity.quantize(_QUANTITY_PLACES).normalize():f}",
            "pricePerUnit": str(from_cents(self.unit_price_cents)),
            "total": str(from_cents(self.total_cents)),
        }


@dataclass(frozen=True, slots=True)
class Participant:
    person_id: str
    person_name: str
    amount_cents: int
    tax_cents: int = 0
    tip_cents: int = 0
    items: Sequence[ItemShare] = ()
    member_ids: Sequence[str] = ()
    payment_method: Optional[str] = None

    @property
    def total_cents(self) -> int:
        return self.amount_cents + self.tax_cents + self.tip_cents

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)

    @property
    def tax(self) -> Decimal:
        return from_cents(self.tax_cents)

    @property
    def tip(self) -> Decimal:
        return from_cents(self.tip_cents)

    @property
    def total(self) -> Decimal:
        return from_cents(self.total_cents)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "personId": self.person_id,
            "personName": self.person_name,
            "amount": str(self.amount),
            "tax": str(self.tax),
            "tip": str(self.tip),
            "total": str(self.total),
            "items": [item.to_dict() for item in self.items],
        }
        if self.member_ids:
            data["memberIds"] = list(self.member_ids)
        if self.payment_method:
            data["paymentMethod"] = self.payment_method
        return data


@dataclass(frozen=True, slots=True)
class SplitResult:
    participants: Sequence[Participant] = ()
    total_amount_cents: int = 0
    total_tax_cents: int = 0
    total_tip_cents: int = 0
    is_valid: bool = True
    error_message: Optional[str] = None

    @classmethod
    def invalid(cls, error_message: str) -> SplitResult:
        return cls(is_valid=False, error_message=error_message)

    @classmethod
    def from_participants(cls, participants: Sequence[Participant]) -> SplitResult:
        return cls(
            participants=tuple(participants),
            total_amount_cents=sum(p.total_cents for p in participants),
            total_tax_cents=sum(p.tax_cents for p in participants),
            total_tip_cents=sum(p.tip_cents for p in participants),
        )

    @property
    def total_amount(self) -> Decimal:
        return from_cents(self.total_amount_cents)

    @property
    def total_tax(self) -> Decimal:
        return from_cents(self.total_tax_cents)

    @property
    def total_tip(self) -> Decimal:
        return from_cents(self.total_tip_cents)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "participants": [p.to_dict() for p in self.participants],
            "totalAmount": str(self.total_amount),
            "totalTax": str(self.total_tax),
            "totalTip": str(self.total_tip),
            "isValid": self.is_valid,
        }
        if self.error_message is not None:
            data["errorMessage"] = self.error_message
        return data
