"""
Data processing and calculation functions for the Investment Dashboard
Handles position valuation, net-worth aggregation and record construction.

Every function here is pure: it reads the snapshots it is given and
returns new objects, so the dashboard can simply re-run it on each rerun.
"""

import time
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .. import config
from . import models

INVENTORY_EPSILON = config.INVENTORY_EPSILON
DEFAULT_BETA = config.DEFAULT_BETA


def classify_beta(beta: float) -> str:
    if beta < config.CASH_BETA_CEILING:
        return config.CATEGORY_CASH
    if beta > config.LEVERAGED_BETA_FLOOR:
        return config.CATEGORY_LEVERAGED
    return config.CATEGORY_CORE


def _date_sort_key(value: str) -> Tuple[int, datetime]:
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return 1, datetime.min
    return 0, ts.to_pydatetime().replace(tzinfo=None)


def sort_transactions(transactions: Iterable[models.Transaction]) -> List[models.Transaction]:
    """Stable date-ascending order; undated rows go last in input order."""
    return sorted(transactions, key=lambda tx: _date_sort_key(tx.date))


def _apply_buy(item: models.PortfolioItem, qty: float, price: float) -> None:
    item.inventory += qty
    item.total_cost += qty * price
    item.total_buy_qty += qty
    item.total_buy_amount += qty * price
    if item.inventory > 0:
        item.avg_cost = item.total_cost / item.inventory


def _apply_sell(item: models.PortfolioItem, qty: float, price: float) -> None:
    cost_basis = item.avg_cost * qty
    item.realized_pnl += price * qty - cost_basis
    item.inventory -= qty
    item.total_cost -= cost_basis
    item.sold_qty += qty
    # Oversells land here too and are closed out at zero.
    if item.inventory <= INVENTORY_EPSILON:
        item.inventory = 0.0
        item.total_cost = 0.0
        item.avg_cost = 0.0


def calculate_portfolio(
    transactions: Sequence[models.Transaction],
    current_prices: Mapping[str, float],
    symbol_betas: Mapping[str, float],
    exchange_rates: Mapping[str, float],
) -> List[models.PortfolioItem]:
    """Fold the transaction log into one weighted-average-cost position per symbol.

    Transactions are replayed in a single global date order. Live data is only
    applied afterwards:

    - ``current_price`` falls back to ``avg_cost`` when the symbol is unpriced
    - ``roi`` is 0 for positions without remaining cost
    - the TWD conversion rate falls back to 1 for unknown currencies

    Closed positions are kept in the result with ``inventory == 0``.
    """
    positions: Dict[str, models.PortfolioItem] = {}

    for tx in sort_transactions(transactions):
        item = positions.get(tx.symbol)
        if item is None:
            beta = symbol_betas.get(tx.symbol, DEFAULT_BETA)
            item = models.PortfolioItem(
                symbol=tx.symbol,
                currency=tx.currency,
                beta=beta,
                category=classify_beta(beta),
            )
            positions[tx.symbol] = item

        if tx.action == config.ACTION_BUY:
            _apply_buy(item, tx.qty, tx.price)
        elif tx.action == config.ACTION_SELL:
            _apply_sell(item, tx.qty, tx.price)

    for item in positions.values():
        item.current_price = current_prices.get(item.symbol, item.avg_cost)
        item.market_value = item.inventory * item.current_price
        item.unrealized_pnl = item.market_value - item.total_cost
        item.roi = item.unrealized_pnl / item.total_cost * 100 if item.total_cost > 0 else 0.0
        rate = exchange_rates.get(item.currency, 1)
        item.market_value_twd = item.market_value * rate
        item.unrealized_pnl_twd = item.unrealized_pnl * rate

    return list(positions.values())


def is_active(item: models.PortfolioItem) -> bool:
    return item.inventory > INVENTORY_EPSILON


def summarize_bank(accounts: Sequence[models.BankAccount], exchange_rates: Mapping[str, float]) -> models.BankSummary:
    usd = sum(a.usd or 0 for a in accounts)
    twd = sum(a.twd or 0 for a in accounts)
    loans = sum(a.loan or 0 for a in accounts)
    usd_rate = exchange_rates.get("USD", 0)
    return models.BankSummary(usd=usd, twd=twd, loans=loans, total_cash_twd=twd + usd * usd_rate)


def pledge_collateral(record: models.PledgeRecord, current_prices: Mapping[str, float]) -> float:
    return record.qty * current_prices.get(record.symbol, 0)


def pledge_maintenance_ratio(record: models.PledgeRecord, current_prices: Mapping[str, float]) -> float:
    if record.loan_amount > 0:
        return pledge_collateral(record, current_prices) / record.loan_amount * 100
    return 0.0


def summarize_pledges(pledges: Sequence[models.PledgeRecord], current_prices: Mapping[str, float]) -> models.PledgeSummary:
    total_loan = sum(p.loan_amount for p in pledges)
    total_collateral = sum(pledge_collateral(p, current_prices) for p in pledges)
    ratio = total_collateral / total_loan * 100 if total_loan > 0 else 0.0
    return models.PledgeSummary(total_loan=total_loan, total_collateral=total_collateral, ratio=ratio)


def compute_overview_metrics(
    items: Sequence[models.PortfolioItem],
    bank_accounts: Sequence[models.BankAccount],
    pledges: Sequence[models.PledgeRecord],
    exchange_rates: Mapping[str, float],
    current_prices: Mapping[str, float],
) -> models.OverviewMetrics:
    bank = summarize_bank(bank_accounts, exchange_rates)
    pledge = summarize_pledges(pledges, current_prices)

    active = [p for p in items if is_active(p)]
    closed = [p for p in items if not is_active(p)]

    stock_value = sum(p.market_value_twd for p in active)
    stock_cost = sum(p.total_cost * exchange_rates.get(p.currency, 1) for p in active)
    realized = sum(p.realized_pnl * exchange_rates.get(p.currency, 1) for p in items)

    category_totals = {name: 0.0 for name in config.CATEGORIES}
    category_totals[config.CATEGORY_CASH] = bank.total_cash_twd
    for p in active:
        category_totals[p.category] = category_totals.get(p.category, 0.0) + p.market_value_twd

    total_assets = stock_value + bank.total_cash_twd
    total_liabilities = bank.loans + pledge.total_loan
    denominator = total_assets or 1
    portfolio_beta = sum(p.beta * (p.market_value_twd / denominator) for p in active)

    return models.OverviewMetrics(
        bank=bank,
        pledge=pledge,
        stock_market_value_twd=stock_value,
        stock_cost_twd=stock_cost,
        unrealized_pnl_twd=stock_value - stock_cost,
        realized_pnl_twd=realized,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities,
        portfolio_beta=portfolio_beta,
        category_totals=category_totals,
        category_weights={k: _share(v, total_assets) for k, v in category_totals.items()},
        allocations={p.symbol: _share(p.market_value_twd, total_assets) for p in active},
        active_items=active,
        closed_items=closed,
    )


def _share(value: float, total: float) -> float:
    return value / total * 100 if total > 0 else 0.0


def category_chart_data(metrics: models.OverviewMetrics) -> pd.DataFrame:
    rows = [
        {"category": name, "value": value}
        for name, value in metrics.category_totals.items()
        if name != config.CATEGORY_OTHER and value > 0
    ]
    return pd.DataFrame(rows, columns=["category", "value"])


def portfolio_to_frame(items: Sequence[models.PortfolioItem], allocations: Optional[Mapping[str, float]] = None) -> pd.DataFrame:
    rows = []
    for p in items:
        rows.append({
            "代號": p.symbol,
            "類別": p.category,
            "Beta": p.beta,
            "幣別": p.currency,
            "庫存": p.inventory,
            "均價": p.avg_cost,
            "現價": p.current_price,
            "市值(TWD)": p.market_value_twd,
            "未實現損益(TWD)": p.unrealized_pnl_twd,
            "報酬率%": p.roi,
            "已實現損益": p.realized_pnl,
            "佔比%": (allocations or {}).get(p.symbol, 0.0),
        })
    return pd.DataFrame(rows)


def transactions_to_frame(transactions: Sequence[models.Transaction]) -> pd.DataFrame:
    if not transactions:
        return pd.DataFrame()
    df = pd.DataFrame([tx.to_dict() for tx in transactions])
    df["amount"] = df["qty"] * df["price"]
    return df


def _now_ms() -> int:
    return int(time.time() * 1000)


def build_transaction(
    date: str,
    action: str,
    symbol: str,
    broker: str,
    qty: float,
    price: float,
    currency: str = "TWD",
    tx_id: Optional[int] = None,
) -> models.Transaction:
    return models.Transaction(
        id=tx_id if tx_id is not None else _now_ms(),
        date=date,
        action=action,
        symbol=symbol.upper().strip(),
        broker=broker,
        qty=float(qty),
        price=float(price),
        currency=currency,
    )


def compute_repayment_date(loan_date: str) -> str:
    start = pd.Timestamp(loan_date)
    target = pd.Timestamp(start.year, start.month, 1) + pd.DateOffset(months=config.PLEDGE_TERM_MONTHS)
    # Day-of-month past the target month's end rolls into the following month.
    due = target + pd.Timedelta(days=start.day - 1) - pd.Timedelta(days=1)
    return due.strftime("%Y-%m-%d")


def build_pledge(
    transfer_date: str,
    symbol: str,
    qty: float,
    broker: str,
    loan_date: str,
    loan_amount: float,
    rate_percent: float,
    current_prices: Mapping[str, float],
) -> models.PledgeRecord:
    symbol = symbol.upper().strip()
    price = current_prices.get(symbol) or 0
    return models.PledgeRecord(
        transfer_date=transfer_date,
        symbol=symbol,
        qty=float(qty),
        broker=broker,
        collateral_value=float(qty) * price,
        loan_date=loan_date,
        loan_amount=float(loan_amount),
        rate=float(rate_percent) / 100,
        repayment_date=compute_repayment_date(loan_date),
    )
