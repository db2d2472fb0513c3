import pytest

from invest_dashboard import config
from invest_dashboard.backend.data_processor import calculate_portfolio, classify_beta, sort_transactions
from invest_dashboard.backend.models import Transaction

RATES = {"USD": 30.0, "TWD": 1}


def tx(tx_id, date, action, symbol, qty, price, currency="TWD"):
    return Transaction(id=tx_id, date=date, action=action, symbol=symbol, broker="元大證券",
                       qty=qty, price=price, currency=currency)


def by_symbol(items):
    return {item.symbol: item for item in items}


def test_classify_beta_buckets():
    assert classify_beta(0.2) == config.CATEGORY_CASH
    assert classify_beta(0.5) == config.CATEGORY_CORE
    assert classify_beta(1.5) == config.CATEGORY_CORE
    assert classify_beta(2.0) == config.CATEGORY_LEVERAGED


def test_buy_sets_weighted_average_cost():
    items = calculate_portfolio([tx(1, "2024-01-02", "BUY", "2330", 100, 10)], {}, {}, RATES)
    item = items[0]
    assert item.inventory == 100
    assert item.total_cost == pytest.approx(1000)
    assert item.avg_cost == pytest.approx(10)


def test_partial_sell_realizes_pnl_at_average_cost():
    items = calculate_portfolio(
        [tx(1, "2024-01-02", "BUY", "2330", 100, 10), tx(2, "2024-01-03", "SELL", "2330", 40, 15)],
        {}, {}, RATES,
    )
    item = items[0]
    assert item.inventory == 60
    assert item.total_cost == pytest.approx(600)
    assert item.avg_cost == pytest.approx(10)
    assert item.realized_pnl == pytest.approx(200)
    assert item.sold_qty == 40
    assert item.total_buy_qty == 100


def test_exact_close_resets_cost_basis():
    items = calculate_portfolio(
        [
            tx(1, "2024-01-02", "BUY", "0050", 10, 100),
            tx(2, "2024-01-03", "BUY", "0050", 10, 120),
            tx(3, "2024-01-04", "SELL", "0050", 20, 130),
        ],
        {"0050": 140}, {}, RATES,
    )
    item = items[0]
    assert (item.inventory, item.total_cost, item.avg_cost) == (0, 0, 0)
    assert item.realized_pnl == pytest.approx((130 - 110) * 20)
    assert item.market_value == 0
    assert item.roi == 0


def test_oversell_snaps_to_closed_position():
    items = calculate_portfolio(
        [tx(1, "2024-01-02", "BUY", "AAA", 10, 10), tx(2, "2024-01-03", "SELL", "AAA", 15, 12)],
        {}, {}, RATES,
    )
    item = items[0]
    assert item.inventory == 0
    assert item.total_cost == 0
    assert item.realized_pnl == pytest.approx(15 * 12 - 15 * 10)


def test_reopened_position_keeps_realized_and_starts_fresh_cost():
    items = calculate_portfolio(
        [
            tx(1, "2024-01-02", "BUY", "AAA", 10, 10),
            tx(2, "2024-01-03", "SELL", "AAA", 10, 20),
            tx(3, "2024-02-01", "BUY", "AAA", 5, 50),
        ],
        {}, {}, RATES,
    )
    item = items[0]
    assert item.realized_pnl == pytest.approx(100)
    assert item.inventory == 5
    assert item.avg_cost == pytest.approx(50)


def test_transactions_are_replayed_in_date_order():
    items = calculate_portfolio(
        [tx(2, "2024-03-01", "SELL", "AAA", 5, 20), tx(1, "2024-01-01", "BUY", "AAA", 10, 10)],
        {}, {}, RATES,
    )
    item = items[0]
    assert item.inventory == 5
    assert item.realized_pnl == pytest.approx(50)


def test_same_date_keeps_input_order():
    buy = tx(1, "2024-01-01", "BUY", "AAA", 10, 10)
    sell = tx(2, "2024-01-01", "SELL", "AAA", 5, 20)

    buy_first = calculate_portfolio([buy, sell], {}, {}, RATES)[0]
    sell_first = calculate_portfolio([sell, buy], {}, {}, RATES)[0]

    assert buy_first.inventory == 5
    assert buy_first.realized_pnl == pytest.approx(50)
    assert sell_first.inventory == 10
    assert sell_first.realized_pnl == pytest.approx(100)


def test_undated_transactions_sort_last():
    rows = [tx(1, "", "BUY", "AAA", 1, 1), tx(2, "2024-05-01", "BUY", "AAA", 1, 1), tx(3, "bad", "BUY", "AAA", 1, 1)]
    assert [t.id for t in sort_transactions(rows)] == [2, 1, 3]


def test_missing_price_falls_back_to_average_cost():
    item = calculate_portfolio([tx(1, "2024-01-02", "BUY", "AAA", 100, 10)], {}, {}, RATES)[0]
    assert item.current_price == pytest.approx(10)
    assert item.unrealized_pnl == pytest.approx(0)
    assert item.roi == 0


def test_foreign_currency_converted_to_twd():
    item = calculate_portfolio(
        [tx(1, "2024-01-02", "BUY", "VOO", 10, 100, "USD")], {"VOO": 110}, {"VOO": 1.0}, RATES,
    )[0]
    assert item.market_value == pytest.approx(1100)
    assert item.market_value_twd == pytest.approx(33000)
    assert item.unrealized_pnl_twd == pytest.approx(3000)
    assert item.roi == pytest.approx(10)


def test_unknown_currency_and_beta_use_defaults():
    item = calculate_portfolio([tx(1, "2024-01-02", "BUY", "X", 1, 10, "EUR")], {"X": 12}, {}, RATES)[0]
    assert item.market_value_twd == pytest.approx(12)
    assert item.beta == 1.0
    assert item.category == config.CATEGORY_CORE


def test_beta_drives_category():
    items = by_symbol(calculate_portfolio(
        [tx(1, "2024-01-02", "BUY", "00865B", 1, 45), tx(2, "2024-01-02", "BUY", "00631L", 1, 200)],
        {}, {"00865B": 0.1, "00631L": 2.0}, RATES,
    ))
    assert items["00865B"].category == config.CATEGORY_CASH
    assert items["00631L"].category == config.CATEGORY_LEVERAGED


def test_inventory_equals_buys_minus_sells():
    rows = [
        tx(1, "2024-01-01", "BUY", "AAA", 30, 10),
        tx(2, "2024-01-02", "SELL", "AAA", 10, 11),
        tx(3, "2024-01-03", "BUY", "AAA", 5, 9),
        tx(4, "2024-01-04", "SELL", "AAA", 7, 12),
    ]
    item = calculate_portfolio(rows, {}, {}, RATES)[0]
    assert item.inventory == pytest.approx(30 - 10 + 5 - 7)
    assert item.total_buy_qty - item.sold_qty == pytest.approx(item.inventory)


def test_closed_positions_are_still_reported():
    items = by_symbol(calculate_portfolio(
        [
            tx(1, "2024-01-01", "BUY", "AAA", 1, 10),
            tx(2, "2024-01-02", "SELL", "AAA", 1, 10),
            tx(3, "2024-01-02", "BUY", "BBB", 1, 10),
        ],
        {}, {}, RATES,
    ))
    assert set(items) == {"AAA", "BBB"}
    assert items["AAA"].inventory == 0


def test_valuation_is_repeatable():
    rows = [tx(1, "2024-01-01", "BUY", "AAA", 3, 10.5), tx(2, "2024-01-02", "SELL", "AAA", 1, 11)]
    first = calculate_portfolio(rows, {"AAA": 12}, {}, RATES)
    second = calculate_portfolio(rows, {"AAA": 12}, {}, RATES)
    assert first == second
