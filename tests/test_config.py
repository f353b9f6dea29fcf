from billsplit.config import Settings
from billsplit.models import EqualSplit
from billsplit.services.split import SplitBillCalculator


def test_settings_defaults():
    settings = Settings()

    assert settings.max_people == 50
    assert settings.max_custom_amount_cents == 1_000_000
    assert settings.max_customer_assignments == 20


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("BILLSPLIT_MAX_PEOPLE", "10")
    settings = Settings()

    result = SplitBillCalculator([], 1000, 0, settings=settings).calculate(EqualSplit(number_of_people=11))

    assert settings.max_people == 10
    assert result.error_message == "Number of people cannot exceed 10"
