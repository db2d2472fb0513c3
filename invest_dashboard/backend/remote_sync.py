"""
Remote data sources for the Investment Dashboard
Talks to the spreadsheet-backed sync endpoint and the public exchange-rate API.
"""

import json
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from . import models
from .. import config

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Raised when the sync endpoint cannot be read or written."""


@dataclass
class SyncResult:
    transactions: Optional[List[models.Transaction]] = None
    prices: Dict[str, float] = field(default_factory=dict)
    betas: Dict[str, float] = field(default_factory=dict)
    bank_accounts: Optional[List[models.BankAccount]] = None
    pledges: Optional[List[models.PledgeRecord]] = None
    usd_rate: Optional[float] = None


def parse_float(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return float("nan")


def _date_only(value: Any) -> Any:
    if isinstance(value, str) and value:
        return value.split("T")[0]
    return value


def normalize_action(value: Any) -> str:
    return config.ACTION_SELL if value in config.SELL_ALIASES else config.ACTION_BUY


def _parse_transactions(rows: List[Dict], base_id: int) -> List[models.Transaction]:
    transactions = []
    for index, row in enumerate(rows):
        transactions.append(models.Transaction(
            id=base_id + index,
            date=str(_date_only(row.get("date")) or ""),
            action=normalize_action(row.get("action")),
            symbol=str(row.get("symbol")).upper(),
            broker=row.get("broker") or "",
            qty=parse_float(row.get("qty")),
            price=parse_float(row.get("price")),
            currency=row.get("currency") or "TWD",
        ))
    return transactions


def _parse_pledges(rows: List[Dict]) -> List[models.PledgeRecord]:
    pledges = []
    for row in rows:
        row = dict(row)
        for key in ("transferDate", "loanDate", "repaymentDate"):
            row[key] = _date_only(row.get(key))
        pledges.append(models.PledgeRecord.from_dict(row))
    return pledges


def parse_sync_payload(payload: Dict, base_id: Optional[int] = None) -> SyncResult:
    """Translate a sync response into models without touching any state."""
    if base_id is None:
        base_id = int(time.time() * 1000)
    result = SyncResult()

    if payload.get("transactions") is not None:
        result.transactions = _parse_transactions(payload["transactions"], base_id)

    for item in payload.get("marketData") or []:
        symbol = str(item.get("symbol")).upper()
        if item.get("price"):
            result.prices[symbol] = parse_float(item["price"])
        beta = item.get("beta")
        if beta is not None and beta != "":
            result.betas[symbol] = parse_float(beta)

    if payload.get("bankData") is not None:
        result.bank_accounts = [models.BankAccount.from_dict(row) for row in payload["bankData"]]

    dashboard = payload.get("dashboard") or {}
    if dashboard.get(config.REMOTE_RATE_FIELD):
        rate = parse_float(dashboard[config.REMOTE_RATE_FIELD])
        if not math.isnan(rate):
            result.usd_rate = rate

    if payload.get("pledgeData") is not None:
        result.pledges = _parse_pledges(payload["pledgeData"])

    return result


def fetch_remote_snapshot(url: str, client: Optional[httpx.Client] = None) -> SyncResult:
    if not url:
        raise SyncError("請先輸入 Google Apps Script 網址")
    owns_client = client is None
    client = client or httpx.Client(follow_redirects=True)
    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("Sync request to %s failed: %s", url, exc)
        raise SyncError(str(exc)) from exc
    finally:
        if owns_client:
            client.close()

    if not response.is_success:
        logger.warning("Sync endpoint returned HTTP %s", response.status_code)
        raise SyncError(f"HTTP 錯誤 ({response.status_code})")
    try:
        payload = response.json()
    except ValueError as exc:
        raise SyncError("回應不是有效的 JSON") from exc
    if not isinstance(payload, dict):
        raise SyncError("回應格式錯誤")
    if payload.get("error"):
        raise SyncError(str(payload["error"]))

    result = parse_sync_payload(payload)
    logger.info(
        "Fetched remote snapshot: %s transactions, %s prices, %s pledges",
        len(result.transactions or []),
        len(result.prices),
        len(result.pledges or []),
    )
    return result


def _post(url: str, body: Dict, client: Optional[httpx.Client]) -> None:
    # The endpoint answers opaquely, so only transport failures are reported.
    owns_client = client is None
    client = client or httpx.Client(follow_redirects=True)
    try:
        client.post(
            url,
            content=json.dumps(body, ensure_ascii=False).encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
    except httpx.HTTPError as exc:
        logger.warning("Push to %s failed: %s", url, exc)
        raise SyncError(str(exc)) from exc
    finally:
        if owns_client:
            client.close()


def remote_transaction_body(tx: models.Transaction) -> Dict:
    body = tx.to_dict()
    body["action"] = config.REMOTE_ACTION_LABELS.get(tx.action, tx.action)
    # Leading quote keeps the spreadsheet from coercing codes like 0050 to numbers.
    body["symbol"] = "'" + tx.symbol
    return body


def push_transaction(url: str, tx: models.Transaction, client: Optional[httpx.Client] = None) -> None:
    _post(url, remote_transaction_body(tx), client)


def push_bank_account(url: str, account: models.BankAccount, client: Optional[httpx.Client] = None) -> None:
    _post(url, {"type": "updateBank", **account.to_dict()}, client)


def push_pledge(url: str, record: models.PledgeRecord, client: Optional[httpx.Client] = None) -> None:
    _post(url, {"type": "addPledge", **record.to_dict()}, client)


def fetch_usd_twd_rate(client: Optional[httpx.Client] = None) -> Optional[float]:
    owns_client = client is None
    client = client or httpx.Client(follow_redirects=True)
    try:
        response = client.get(config.RATE_API_URL)
        if not response.is_success:
            logger.warning("Rate API returned HTTP %s", response.status_code)
            return None
        twd = (response.json().get("rates") or {}).get("TWD")
        if not twd:
            return None
        return round(float(twd), 2)
    except (httpx.HTTPError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("Rate fetch failed: %s", exc)
        return None
    finally:
        if owns_client:
            client.close()
