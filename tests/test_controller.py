import asyncio
from decimal import Decimal

import pytest

from fxconvert.core.errors import (
    BusyError,
    ConversionError,
    RateFetchError,
    ValidationError,
)
from fxconvert.models.constants import LAST_RESULT_KEY
from fxconvert.services.controller import ConversionController
from fxconvert.services.storage import InMemoryKeyValueStore

from .conftest import FailingStore, FakeRateSource

pytestmark = pytest.mark.asyncio


async def _ready(controller: ConversionController) -> ConversionController:
    await controller.initialize()
    return controller


# ---------------------------------------------------------------- initialize


async def test_initialize_loads_currencies_and_defaults_selection(controller, rate_source):
    state = await controller.initialize()
    assert rate_source.calls == ["USD"]
    assert state.currencies == ("USD", "EUR", "JPY")
    assert state.from_currency == "USD"
    assert state.to_currency == "EUR"
    assert state.result == ""
    assert state.busy is False


async def test_initialize_restores_last_result_without_recomputing(rate_source):
    store = InMemoryKeyValueStore({LAST_RESULT_KEY: "9.00"})
    controller = ConversionController(rate_source, store)
    state = await controller.initialize()
    assert state.result == "9.00"
    # only the currency list was fetched; nothing was converted
    assert rate_source.calls == ["USD"]


async def test_initialize_fetch_failure_posts_notice_and_leaves_no_currencies(rate_source, store):
    rate_source.fail = True
    await store.set_item(LAST_RESULT_KEY, "4.20")
    controller = ConversionController(rate_source, store)
    state = await controller.initialize()
    assert state.currencies == ()
    assert state.from_currency is None and state.to_currency is None
    assert state.result == "4.20"
    assert state.busy is False
    notices = controller.notices.pop_all()
    assert [n.title for n in notices] == ["Error"]
    assert "Failed to fetch currencies" in notices[0].message


async def test_initialize_storage_failure_is_silent(rate_source):
    controller = ConversionController(rate_source, FailingStore())
    state = await controller.initialize()
    assert state.result == ""
    assert state.currencies == ("USD", "EUR", "JPY")
    assert controller.notices.pending() == []


async def test_initialize_without_alternative_currency(store):
    source = FakeRateSource({"USD": {"USD": 1.0}})
    controller = await _ready(ConversionController(source, store))
    assert controller.state.to_currency is None
    controller.set_amount("10")
    with pytest.raises(ValidationError):
        await controller.convert()
    assert source.calls == ["USD"]


async def test_load_currency_list_returns_codes_and_keeps_state_on_failure(controller, rate_source):
    await controller.initialize()
    assert await controller.load_currency_list() == ["USD", "EUR", "JPY"]
    before = controller.state
    rate_source.fail = True
    with pytest.raises(RateFetchError):
        await controller.load_currency_list()
    assert controller.state == before


# ---------------------------------------------------------------- convert


async def test_convert_scenario_usd_to_eur(controller, rate_source, store):
    await controller.initialize()
    result = await controller.convert(amount="10", from_currency="USD", to_currency="EUR")
    assert result.result == "9.00"
    assert result.rate == 0.9
    assert result.amount == Decimal("10")
    assert controller.state.result == "9.00"
    assert await store.get_item(LAST_RESULT_KEY) == "9.00"
    assert rate_source.calls == ["USD", "USD"]


@pytest.mark.parametrize("amount,rate,expected", [
    ("1", 0.9, "0.90"),
    ("3.333", 1.0, "3.33"),
    ("0.005", 1.0, "0.01"),
    ("2.5", 150.0, "375.00"),
    ("1234567.891", 0.9, "1111111.10"),
])
async def test_convert_rounds_to_two_places(store, amount, rate, expected):
    source = FakeRateSource({"USD": {"USD": 1.0, "EUR": rate}})
    controller = await _ready(ConversionController(source, store))
    result = await controller.convert(amount=amount)
    assert result.result == expected
    assert len(result.result.split(".")[1]) == 2


@pytest.mark.parametrize("amount,expected", [
    ("1e30", "9" + "0" * 29 + ".00"),
    ("123456789012345678901234567890", "111111110111111111011111111101.00"),
    ("9e99", "81" + "0" * 98 + ".00"),
])
async def test_convert_handles_very_large_amounts(controller, store, amount, expected):
    await controller.initialize()
    result = await controller.convert(amount=amount)
    assert result.result == expected
    assert controller.state.result == expected
    assert await store.get_item(LAST_RESULT_KEY) == expected


async def test_convert_uses_screen_state_when_no_inputs_given(controller):
    await controller.initialize()
    controller.set_amount("2")
    controller.select_to("JPY")
    result = await controller.convert()
    assert result.result == "300.00"


@pytest.mark.parametrize("amount", ["", "   ", "abc", "12abc", "NaN", "Infinity", "1e100", "-2.5e120"])
async def test_convert_invalid_amount_makes_no_network_call(controller, rate_source, store, amount):
    await controller.initialize()
    await store.set_item(LAST_RESULT_KEY, "1.00")
    calls_before = list(rate_source.calls)
    with pytest.raises(ValidationError) as info:
        await controller.convert(amount=amount)
    assert info.value.title == "Invalid Amount"
    assert rate_source.calls == calls_before
    assert controller.state.result == ""
    assert controller.state.busy is False
    assert await store.get_item(LAST_RESULT_KEY) == "1.00"


async def test_convert_abc_scenario_keeps_previous_result(controller, rate_source):
    await controller.initialize()
    await controller.convert(amount="10")
    with pytest.raises(ValidationError):
        await controller.convert(amount="abc")
    assert controller.state.result == "9.00"
    assert rate_source.calls == ["USD", "USD"]


async def test_convert_rejects_currency_outside_current_set(controller, rate_source):
    await controller.initialize()
    with pytest.raises(ValidationError) as info:
        await controller.convert(amount="10", to_currency="GBP")
    assert info.value.title == "Invalid Currency"
    assert rate_source.calls == ["USD"]
    assert controller.state.to_currency == "EUR"
    assert controller.state.amount == "10"
    with pytest.raises(ValidationError):
        await controller.convert(from_currency="XYZ")
    assert controller.state.from_currency == "USD"
    assert (await controller.convert()).result == "9.00"


async def test_convert_fetch_failure_leaves_result_and_persisted_value(controller, rate_source, store):
    await controller.initialize()
    await controller.convert(amount="10")
    rate_source.fail = True
    with pytest.raises(ConversionError) as info:
        await controller.convert(amount="20")
    assert isinstance(info.value.__cause__, RateFetchError)
    assert controller.state.result == "9.00"
    assert controller.state.busy is False
    assert await store.get_item(LAST_RESULT_KEY) == "9.00"


async def test_convert_missing_target_rate_is_conversion_error(store):
    source = FakeRateSource({
        "USD": {"USD": 1.0, "EUR": 0.9, "JPY": 150.0},
        "EUR": {"EUR": 1.0, "USD": 1.1},
    })
    controller = await _ready(ConversionController(source, store))
    with pytest.raises(ConversionError):
        await controller.convert(amount="10", from_currency="EUR", to_currency="JPY")
    assert controller.state.result == ""
    assert await store.get_item(LAST_RESULT_KEY) is None


async def test_convert_replaces_currency_set_with_fetched_table(store):
    source = FakeRateSource({
        "USD": {"USD": 1.0, "EUR": 0.9, "JPY": 150.0},
        "EUR": {"EUR": 1.0, "USD": 1.1, "CHF": 0.95},
    })
    controller = await _ready(ConversionController(source, store))
    await controller.convert(amount="10", from_currency="EUR", to_currency="USD")
    assert controller.state.result == "11.00"
    assert controller.state.currencies == ("EUR", "USD", "CHF")


async def test_convert_persist_failure_is_silent(rate_source):
    failing = FailingStore()
    controller = await _ready(ConversionController(rate_source, failing))
    result = await controller.convert(amount="10")
    assert result.result == "9.00"
    assert controller.state.result == "9.00"
    assert failing.attempts == 2  # restore + persist
    assert controller.notices.pending() == []


async def test_convert_while_busy_is_rejected(controller, rate_source):
    await controller.initialize()
    gate = asyncio.Event()
    original = rate_source.fetch_rates

    async def slow_fetch(base):
        await gate.wait()
        return await original(base)

    rate_source.fetch_rates = slow_fetch
    first = asyncio.create_task(controller.convert(amount="10"))
    await asyncio.sleep(0)
    assert controller.state.busy is True
    with pytest.raises(BusyError):
        await controller.convert(amount="20")
    with pytest.raises(BusyError):
        controller.clear()
    # swap is never gated
    controller.swap()
    gate.set()
    result = await first
    assert result.result == "9.00"
    assert controller.state.busy is False


# ---------------------------------------------------------------- swap / clear / input


async def test_swap_twice_restores_pair(controller):
    await controller.initialize()
    controller.swap()
    assert (controller.state.from_currency, controller.state.to_currency) == ("EUR", "USD")
    controller.swap()
    assert (controller.state.from_currency, controller.state.to_currency) == ("USD", "EUR")


async def test_swap_then_convert_uses_new_base(controller, rate_source):
    await controller.initialize()
    controller.swap()
    result = await controller.convert(amount="10")
    assert rate_source.calls[-1] == "EUR"
    assert result.result == "11.00"


async def test_clear_is_idempotent_and_keeps_persisted_value(controller, store):
    await controller.initialize()
    await controller.convert(amount="10")
    once = controller.clear()
    twice = controller.clear()
    assert once == twice
    assert once.amount == "" and once.result == ""
    assert once.currencies == ("USD", "EUR", "JPY")
    assert await store.get_item(LAST_RESULT_KEY) == "9.00"


async def test_select_unknown_currency_is_rejected(controller):
    await controller.initialize()
    with pytest.raises(ValidationError):
        controller.select_from("XYZ")
    assert controller.state.from_currency == "USD"
    controller.select_from("JPY")
    assert controller.state.from_currency == "JPY"


async def test_restart_restores_result_from_sqlite(tmp_path, rate_source):
    from fxconvert.db.dal import Database
    from fxconvert.db.migrate import apply_migrations
    from fxconvert.services.storage import SqliteKeyValueStore

    path = tmp_path / "app.sqlite3"
    apply_migrations(path)
    first = await _ready(ConversionController(rate_source, SqliteKeyValueStore(Database(path))))
    await first.convert(amount="10")

    restarted = ConversionController(FakeRateSource(), SqliteKeyValueStore(Database(path)))
    assert await restarted.restore_last_result() == "9.00"
    assert restarted.state.result == "9.00"


async def test_aclose_closes_rate_source(controller, rate_source):
    await controller.aclose()
    assert rate_source.closed is True


class _BusyRecordingStore(InMemoryKeyValueStore):
    def __init__(self):
        super().__init__()
        self.controller = None
        self.busy_on_write = []

    async def set_item(self, key, value):
        self.busy_on_write.append(self.controller.state.busy)
        await super().set_item(key, value)


async def test_result_is_persisted_before_busy_clears(rate_source):
    store = _BusyRecordingStore()
    controller = await _ready(ConversionController(rate_source, store))
    store.controller = controller
    await controller.convert(amount="10")
    assert store.busy_on_write == [True]
    assert controller.state.busy is False


async def test_convert_failures_are_logged(store, caplog):
    source = FakeRateSource({
        "USD": {"USD": 1.0, "EUR": 0.9, "JPY": 150.0},
        "EUR": {"EUR": 1.0, "USD": 1.1},
    })
    controller = await _ready(ConversionController(source, store))
    caplog.set_level("ERROR", logger="fxconvert.controller")
    with pytest.raises(ConversionError):
        await controller.convert(amount="10", from_currency="EUR", to_currency="JPY")
    source.fail = True
    with pytest.raises(ConversionError):
        await controller.convert(amount="10", from_currency="USD", to_currency="EUR")
    errors = [r for r in caplog.records if r.name == "fxconvert.controller" and r.levelname == "ERROR"]
    assert len(errors) == 2
    assert [(r.from_currency, r.to_currency) for r in errors] == [("EUR", "JPY"), ("USD", "EUR")]
