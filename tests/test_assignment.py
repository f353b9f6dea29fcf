from billsplit.models import ByItemSplit, EqualSplit, ItemAssignment, OrderLineItem, SharedItem, SharedItemsSplit
from billsplit.services.assignment import all_items_assigned, assigned_quantities, item_claims, unassigned_items
from billsplit.services.split import SplitBillCalculator

ORDER = [
    OrderLineItem(id="burger", menu_item_id="m1", menu_item_name="Burger", unit_price_cents=1200, quantity=2),
    OrderLineItem(id="fries", menu_item_id="m2", menu_item_name="Fries", unit_price_cents=450, quantity=1),
]


def test_assigned_quantities_accumulates():
    assert assigned_quantities([("burger", 1), ("fries", 1), ("burger", 1)]) == {"burger": 2, "fries": 1}


def test_unassigned_items_reports_remaining_quantity():
    remaining = unassigned_items(ORDER, [("burger", 1)])

    assert [(item.id, item.quantity) for item in remaining] == [("burger", 1), ("fries", 1)]
    assert ORDER[0].quantity == 2


def test_all_items_assigned():
    assert all_items_assigned(ORDER, [("burger", 2), ("fries", 1)])
    assert not all_items_assigned(ORDER, [("burger", 2)])


def test_item_claims_default_to_full_quantity():
    items_by_id = {item.id: item for item in ORDER}
    config = SharedItemsSplit(
        shared_items=[SharedItem("burger", ["a", "b"])],
        individual_items=[ItemAssignment("fries", "a", 1)],
    )

    assert item_claims(config, items_by_id) == [("burger", 2), ("fries", 1)]
    assert item_claims(EqualSplit(number_of_people=2), items_by_id) == []


def test_calculator_lists_unassigned_items():
    calculator = SplitBillCalculator(ORDER, 2850, 0)
    config = ByItemSplit(assignments=[ItemAssignment("burger", "alice", 1)])

    remaining = calculator.unassigned_items(config)
    assert [(item.menu_item_name, item.quantity) for item in remaining] == [("Burger", 1), ("Fries", 1)]
    assert not calculator.all_items_assigned(config)
    assert calculator.calculate(config).error_message == "Not all items have been assigned"
