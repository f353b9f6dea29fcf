"""Request payloads as the POS front end sends them (camelCase JSON)."""

from __future__ import annotations

from decimal import Decimal
from typing import AbstractSet, Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from billsplit.config import Settings
from billsplit.models import (
    ByItemSplit,
    ByPersonSplit,
    CustomAllocation,
    CustomAmountSplit,
    CustomerAssignment,
    CustomerItem,
    CustomerItemsSplit,
    EqualSplit,
    ItemAssignment,
    Modifier,
    OrderLineItem,
    PercentageAllocation,
    PercentageSplit,
    PersonBill,
    RoundTo,
    SharedItem,
    SharedItemsSplit,
    SplitConfig,
    SplitMethod,
    SplitResult,
)
from billsplit.services.money import to_cents
from billsplit.services.split import ALL_METHODS, SplitBillCalculator


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ModifierPayload(_Payload):
    id: str
    name: str = ""
    price: Decimal = Field(Decimal(0), ge=0)

    def to_model(self) -> Modifier:
        return Modifier(id=self.id, name=self.name, price_cents=to_cents(self.price))


class OrderItemPayload(_Payload):
    id: str
    menu_item_id: str = ""
    menu_item_name: str = ""
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(1, ge=1)
    modifiers: list[ModifierPayload] = Field(default_factory=list)
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_menu_item(cls, data: Any) -> Any:
        # Stored orders embed the menu item: {"menuItem": {"id", "name", "price"}}.
        if isinstance(data, dict) and isinstance(data.get("menuItem"), dict):
            menu_item = data["menuItem"]
            data = {
                "menuItemId": str(menu_item.get("id", "")),
                "menuItemName": menu_item.get("name", ""),
                "unitPrice": menu_item.get("price"),
                **{key: value for key, value in data.items() if key != "menuItem"},
            }
        return data

    def to_model(self) -> OrderLineItem:
        return OrderLineItem(
            id=self.id,
            menu_item_id=self.menu_item_id,
            menu_item_name=self.menu_item_name or self.menu_item_id or self.id,
            unit_price_cents=to_cents(self.unit_price),
            quantity=self.quantity,
            modifiers=tuple(modifier.to_model() for modifier in self.modifiers),
            notes=self.notes,
        )


class EqualPayload(_Payload):
    method: Literal["equal"]
    number_of_people: int
    round_to: RoundTo = RoundTo.CENT
    include_tax_tips: bool = True

    def to_model(self) -> EqualSplit:
        return EqualSplit(
            number_of_people=self.number_of_people,
            round_to=self.round_to,
            include_tax_tips=self.include_tax_tips,
        )


class ItemAssignmentPayload(_Payload):
    item_id: str
    person_id: str
    quantity: Optional[int] = None

    def to_model(self) -> ItemAssignment:
        return ItemAssignment(item_id=self.item_id, person_id=self.person_id, quantity=self.quantity)


class ByItemPayload(_Payload):
    method: Literal["by_item"]
    assignments: list[ItemAssignmentPayload]
    include_tax_tips: bool = True

    def to_model(self) -> ByItemSplit:
        return ByItemSplit(
            assignments=tuple(a.to_model() for a in self.assignments),
            include_tax_tips=self.include_tax_tips,
        )


class BillPayload(_Payload):
    id: str
    person_ids: list[str]
    item_quantities: dict[str, int] = Field(default_factory=dict)
    custom_amount: Optional[Decimal] = None

    def to_model(self) -> PersonBill:
        return PersonBill(
            id=self.id,
            person_ids=tuple(self.person_ids),
            item_quantities=dict(self.item_quantities),
            custom_amount_cents=to_cents(self.custom_amount) if self.custom_amount is not None else None,
        )


class ByPersonPayload(_Payload):
    method: Literal["by_person"]
    bills: list[BillPayload]
    include_tax_tips: bool = True

    def to_model(self) -> ByPersonSplit:
        return ByPersonSplit(bills=tuple(b.to_model() for b in self.bills), include_tax_tips=self.include_tax_tips)


class PercentageAllocationPayload(_Payload):
    person_id: str
    percentage: Decimal


class PercentagePayload(_Payload):
    method: Literal["percentage"]
    allocations: list[PercentageAllocationPayload]
    round_to: RoundTo = RoundTo.CENT
    include_tax_tips: bool = True

    def to_model(self) -> PercentageSplit:
        return PercentageSplit(
            allocations=tuple(PercentageAllocation(a.person_id, a.percentage) for a in self.allocations),
            round_to=self.round_to,
            include_tax_tips=self.include_tax_tips,
        )


class CustomAllocationPayload(_Payload):
    person_name: str = ""
    amount: Decimal


class CustomAmountPayload(_Payload):
    method: Literal["custom_amount"]
    allocations: list[CustomAllocationPayload]
    include_tax_tips: bool = True

    def to_model(self) -> CustomAmountSplit:
        return CustomAmountSplit(
            allocations=tuple(CustomAllocation(a.person_name, to_cents(a.amount)) for a in self.allocations),
            include_tax_tips=self.include_tax_tips,
        )


class SharedItemPayload(_Payload):
    item_id: str
    person_ids: list[str]
    quantity: Optional[int] = None


class SharedItemsPayload(_Payload):
    method: Literal["shared_items"]
    shared_items: list[SharedItemPayload] = Field(default_factory=list)
    individual_items: list[ItemAssignmentPayload] = Field(default_factory=list)
    include_tax_tips: bool = True

    def to_model(self) -> SharedItemsSplit:
        return SharedItemsSplit(
            shared_items=tuple(SharedItem(s.item_id, tuple(s.person_ids), s.quantity) for s in self.shared_items),
            individual_items=tuple(i.to_model() for i in self.individual_items),
            include_tax_tips=self.include_tax_tips,
        )


class CustomerItemPayload(_Payload):
    order_item_id: str
    quantity: int


class CustomerAssignmentPayload(_Payload):
    customer_name: str = ""
    items: list[CustomerItemPayload] = Field(default_factory=list)
    payment_method: Optional[str] = None


class CustomerItemsPayload(_Payload):
    method: Literal["customer_items"]
    assignments: list[CustomerAssignmentPayload]
    include_tax_tips: bool = True

    def to_model(self) -> CustomerItemsSplit:
        return CustomerItemsSplit(
            assignments=tuple(
                CustomerAssignment(
                    customer_name=a.customer_name,
                    items=tuple(CustomerItem(i.order_item_id, i.quantity) for i in a.items),
                    payment_method=a.payment_method,
                )
                for a in self.assignments
            ),
            include_tax_tips=self.include_tax_tips,
        )


SplitConfigPayload = Annotated[
    Union[
        EqualPayload,
        ByItemPayload,
        ByPersonPayload,
        PercentagePayload,
        CustomAmountPayload,
        SharedItemsPayload,
        CustomerItemsPayload,
    ],
    Field(discriminator="method"),
]

_config_adapter: TypeAdapter[Any] = TypeAdapter(SplitConfigPayload)


class SplitRequest(_Payload):
    items: list[OrderItemPayload] = Field(default_factory=list)
    subtotal: Decimal
    tax: Decimal = Decimal(0)
    tip: Decimal = Decimal(0)
    config: SplitConfigPayload

    def calculator(
        self,
        methods: AbstractSet[SplitMethod] = ALL_METHODS,
        settings: Settings | None = None,
    ) -> SplitBillCalculator:
        return SplitBillCalculator(
            [item.to_model() for item in self.items],
            to_cents(self.subtotal),
            to_cents(self.tax),
            to_cents(self.tip),
            methods=methods,
            settings=settings,
        )


def parse_split_config(payload: Mapping[str, Any]) -> SplitConfig:
    """Parse a config payload into its split model; raises ``ValidationError``."""
    return _config_adapter.validate_python(payload).to_model()


def describe_validation_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    if error["type"] in ("union_tag_invalid", "union_tag_not_found"):
        return "Unsupported split method"
    location = ".".join(str(part) for part in error["loc"])
    return f"Invalid request: {location}: {error['msg']}" if location else f"Invalid request: {error['msg']}"


def calculate_request(
    payload: Mapping[str, Any],
    *,
    methods: AbstractSet[SplitMethod] = ALL_METHODS,
    settings: Settings | None = None,
) -> SplitResult:
    try:
        request = SplitRequest.model_validate(payload)
    except ValidationError as exc:
        return SplitResult.invalid(describe_validation_error(exc))
    return request.calculator(methods, settings).calculate(request.config.to_model())
