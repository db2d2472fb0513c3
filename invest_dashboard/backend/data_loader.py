"""
Data loading functions for the Investment Dashboard
Handles the JSON key-value store that backs every persisted slot.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from . import models
from .. import config

logger = logging.getLogger(__name__)

STORAGE_PATH = config.STORAGE_PATH
STORAGE_KEYS = config.STORAGE_KEYS


class JsonStore:
    """One `<slot>.json` file per named slot under a storage directory."""

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else STORAGE_PATH

    def path_for(self, slot: str) -> Path:
        return self.root / f"{slot}.json"

    def load(self, slot: str, default: Any = None) -> Any:
        path = self.path_for(slot)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read slot %s from %s: %s", slot, path, exc)
            return default

    def save(self, slot: str, value: Any) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.path_for(slot).write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")


def _as_list(data: Any) -> list:
    return data if isinstance(data, list) else []


def _as_number_map(data: Any) -> Dict[str, float]:
    if not isinstance(data, dict):
        return {}
    return {str(k): float(v) for k, v in data.items() if isinstance(v, (int, float))}


def load_state(store: JsonStore) -> models.AppState:
    transactions = tuple(
        models.Transaction.from_dict(row)
        for row in _as_list(store.load(STORAGE_KEYS["transactions"], []))
        if isinstance(row, dict)
    )
    bank_accounts = tuple(
        models.BankAccount.from_dict(row)
        for row in _as_list(store.load(STORAGE_KEYS["bank"], []))
        if isinstance(row, dict)
    )
    pledges = tuple(
        models.PledgeRecord.from_dict(row)
        for row in _as_list(store.load(STORAGE_KEYS["pledge"], []))
        if isinstance(row, dict)
    )
    rates = _as_number_map(store.load(STORAGE_KEYS["rates"])) or dict(config.DEFAULT_EXCHANGE_RATES)
    rate_mode = store.load(STORAGE_KEYS["rate_mode"], config.DEFAULT_RATE_MODE)
    theme = store.load(STORAGE_KEYS["theme"], config.DEFAULT_THEME)
    sync_url = store.load(STORAGE_KEYS["sync_url"], "")

    return models.AppState(
        transactions=transactions,
        bank_accounts=bank_accounts,
        pledges=pledges,
        prices=_as_number_map(store.load(STORAGE_KEYS["prices"], {})),
        betas=_as_number_map(store.load(STORAGE_KEYS["betas"], {})),
        rates=rates,
        rate_mode=rate_mode if rate_mode in config.RATE_MODES else config.DEFAULT_RATE_MODE,
        sync_url=sync_url if isinstance(sync_url, str) else "",
        theme=theme if theme in config.THEMES else config.DEFAULT_THEME,
    )


def serialize_slot(state: models.AppState, name: str) -> Any:
    if name == "transactions":
        return [tx.to_dict() for tx in state.transactions]
    if name == "bank":
        return [account.to_dict() for account in state.bank_accounts]
    if name == "pledge":
        return [record.to_dict() for record in state.pledges]
    if name in ("prices", "betas", "rates"):
        return dict(getattr(state, name))
    if name in ("rate_mode", "sync_url", "theme"):
        return getattr(state, name)
    raise KeyError(name)


def save_slots(store: JsonStore, state: models.AppState, names: Iterable[str]) -> None:
    for name in names:
        store.save(STORAGE_KEYS[name], serialize_slot(state, name))
