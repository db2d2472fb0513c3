"""
Data models for the Investment Dashboard
Provides object-oriented access to transactions, bank, pledge and position data.

Persisted and remote records use the camelCase keys of the JSON slots;
`from_dict`/`to_dict` translate between those and the attribute names.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def _float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


@dataclass(frozen=True)
class Transaction:
    id: int
    date: str
    action: str
    symbol: str
    broker: str
    qty: float
    price: float
    currency: str = "TWD"

    @classmethod
    def from_dict(cls, data: Dict) -> "Transaction":
        return cls(
            id=int(data.get("id", 0) or 0),
            date=str(data.get("date", "")),
            action=str(data.get("action", "BUY")),
            symbol=str(data.get("symbol", "")),
            broker=str(data.get("broker", "") or ""),
            qty=_float(data.get("qty")),
            price=_float(data.get("price")),
            currency=str(data.get("currency") or "TWD"),
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "date": self.date,
            "action": self.action,
            "symbol": self.symbol,
            "broker": self.broker,
            "qty": self.qty,
            "price": self.price,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class BankAccount:
    bank: str
    usd: float = 0.0
    twd: float = 0.0
    loan: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict) -> "BankAccount":
        return cls(
            bank=str(data.get("bank", "")),
            usd=_float(data.get("usd")),
            twd=_float(data.get("twd")),
            loan=_float(data.get("loan")),
        )

    def to_dict(self) -> Dict:
        return {"bank": self.bank, "usd": self.usd, "twd": self.twd, "loan": self.loan}


@dataclass(frozen=True)
class PledgeRecord:
    transfer_date: str
    symbol: str
    qty: float
    broker: str
    collateral_value: float
    loan_date: str
    loan_amount: float
    rate: float
    repayment_date: str
    interest: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "PledgeRecord":
        interest = data.get("interest")
        return cls(
            transfer_date=str(data.get("transferDate", "") or ""),
            symbol=str(data.get("symbol", "")),
            qty=_float(data.get("qty")),
            broker=str(data.get("broker", "") or ""),
            collateral_value=_float(data.get("collateralValue")),
            loan_date=str(data.get("loanDate", "") or ""),
            loan_amount=_float(data.get("loanAmount")),
            rate=_float(data.get("rate")),
            repayment_date=str(data.get("repaymentDate", "") or ""),
            interest=None if interest is None else _float(interest),
        )

    def to_dict(self) -> Dict:
        data = {
            "transferDate": self.transfer_date,
            "symbol": self.symbol,
            "qty": self.qty,
            "broker": self.broker,
            "collateralValue": self.collateral_value,
            "loanDate": self.loan_date,
            "loanAmount": self.loan_amount,
            "rate": self.rate,
            "repaymentDate": self.repayment_date,
        }
        if self.interest is not None:
            data["interest"] = self.interest
        return data


@dataclass
class PortfolioItem:
    symbol: str
    currency: str
    beta: float
    category: str
    inventory: float = 0.0
    total_cost: float = 0.0
    total_buy_qty: float = 0.0
    total_buy_amount: float = 0.0
    sold_qty: float = 0.0
    realized_pnl: float = 0.0
    avg_cost: float = 0.0
    current_price: float = 0.0
    market_value: float = 0.0
    market_value_twd: float = 0.0
    unrealized_pnl: float = 0.0
    unrealized_pnl_twd: float = 0.0
    roi: float = 0.0


@dataclass
class BankSummary:
    usd: float
    twd: float
    loans: float
    total_cash_twd: float


@dataclass
class PledgeSummary:
    total_loan: float
    total_collateral: float
    ratio: float


@dataclass
class OverviewMetrics:
    bank: BankSummary
    pledge: PledgeSummary
    stock_market_value_twd: float
    stock_cost_twd: float
    unrealized_pnl_twd: float
    realized_pnl_twd: float
    total_assets: float
    total_liabilities: float
    net_worth: float
    portfolio_beta: float
    category_totals: Dict[str, float] = field(default_factory=dict)
    category_weights: Dict[str, float] = field(default_factory=dict)
    allocations: Dict[str, float] = field(default_factory=dict)
    active_items: List[PortfolioItem] = field(default_factory=list)
    closed_items: List[PortfolioItem] = field(default_factory=list)


@dataclass(frozen=True)
class AppState:
    transactions: Tuple[Transaction, ...] = ()
    bank_accounts: Tuple[BankAccount, ...] = ()
    pledges: Tuple[PledgeRecord, ...] = ()
    prices: Dict[str, float] = field(default_factory=dict)
    betas: Dict[str, float] = field(default_factory=dict)
    rates: Dict[str, float] = field(default_factory=dict)
    rate_mode: str = "auto"
    sync_url: str = ""
    theme: str = "light"
