"""
State management for the Investment Dashboard
Owns the application snapshot and serialises every mutation through one writer.
"""

import dataclasses
import logging
from typing import Callable, Optional

from . import models
from .. import config
from .data_loader import JsonStore, load_state, save_slots
from .remote_sync import SyncError, SyncResult

logger = logging.getLogger(__name__)


def parse_amount(raw: str) -> float:
    try:
        return float(str(raw).replace(",", ""))
    except ValueError:
        return 0.0


class StateManager:
    """Single writer for `AppState`.

    Each command replaces the snapshot, bumps `revision` and saves only the
    slots it touched. Readers receive the immutable snapshot via `state`.
    """

    def __init__(self, store: JsonStore, state: Optional[models.AppState] = None):
        self.store = store
        self.state = state if state is not None else load_state(store)
        self.revision = 0

    def _commit(self, *slots: str, **changes) -> models.AppState:
        self.state = dataclasses.replace(self.state, **changes)
        self.revision += 1
        save_slots(self.store, self.state, slots)
        return self.state

    def add_transaction(self, tx: models.Transaction) -> models.AppState:
        ids = {t.id for t in self.state.transactions}
        if tx.id in ids:
            # Synced ids are base_ms + row index, so a fresh timestamp can land on one.
            tx = dataclasses.replace(tx, id=max(ids) + 1)
        return self._commit("transactions", transactions=(tx,) + self.state.transactions)

    def delete_transaction(self, tx_id: int) -> models.AppState:
        remaining = tuple(tx for tx in self.state.transactions if tx.id != tx_id)
        return self._commit("transactions", transactions=remaining)

    def update_bank_field(self, bank: str, field_name: str, raw_value: str) -> Optional[models.BankAccount]:
        if field_name not in ("usd", "twd", "loan"):
            raise ValueError(f"Unknown bank field: {field_name}")
        value = parse_amount(raw_value)
        updated = None
        accounts = []
        for account in self.state.bank_accounts:
            if account.bank == bank:
                account = dataclasses.replace(account, **{field_name: value})
                updated = account
            accounts.append(account)
        self._commit("bank", bank_accounts=tuple(accounts))
        return updated

    def add_pledge(self, record: models.PledgeRecord) -> models.AppState:
        return self._commit("pledge", pledges=self.state.pledges + (record,))

    def apply_sync(self, result: SyncResult) -> models.AppState:
        changes = {
            "prices": {**self.state.prices, **result.prices},
            "betas": {**self.state.betas, **result.betas},
        }
        slots = ["prices", "betas"]
        if result.transactions is not None:
            changes["transactions"] = tuple(result.transactions)
            slots.append("transactions")
        if result.bank_accounts is not None:
            changes["bank_accounts"] = tuple(result.bank_accounts)
            slots.append("bank")
        if result.pledges is not None:
            changes["pledges"] = tuple(result.pledges)
            slots.append("pledge")
        if result.usd_rate is not None:
            changes["rates"] = {**self.state.rates, "USD": result.usd_rate}
            slots.append("rates")
        return self._commit(*slots, **changes)

    def set_exchange_rate(self, currency: str, rate: float) -> models.AppState:
        return self._commit("rates", rates={**self.state.rates, currency: rate})

    def apply_rate_refresh(self, usd_rate: Optional[float]) -> models.AppState:
        if usd_rate is None or self.state.rate_mode != "auto":
            return self.state
        return self.set_exchange_rate("USD", usd_rate)

    def set_rate_mode(self, mode: str) -> models.AppState:
        if mode not in config.RATE_MODES:
            raise ValueError(f"Unknown rate mode: {mode}")
        return self._commit("rate_mode", rate_mode=mode)

    def set_sync_url(self, url: str) -> models.AppState:
        return self._commit("sync_url", sync_url=url.strip())

    def set_theme(self, theme: str) -> models.AppState:
        if theme not in config.THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        return self._commit("theme", theme=theme)

    def clear_all(self) -> models.AppState:
        return self._commit(
            "transactions", "prices", "betas", "bank", "pledge", "rates",
            transactions=(),
            prices={},
            betas={},
            bank_accounts=(),
            pledges=(),
            rates=dict(config.DEFAULT_EXCHANGE_RATES),
        )

    def sync(self, fetch_remote: Callable[[str], SyncResult]) -> models.AppState:
        result = fetch_remote(self.state.sync_url)
        state = self.apply_sync(result)
        logger.info("Applied remote sync (revision %s)", self.revision)
        return state

    def refresh_rate(self, fetch_rate: Callable[[], Optional[float]]) -> models.AppState:
        if self.state.rate_mode != "auto":
            return self.state
        return self.apply_rate_refresh(fetch_rate())

    def startup(
        self,
        fetch_rate: Callable[[], Optional[float]],
        fetch_remote: Callable[[str], SyncResult],
    ) -> models.AppState:
        """One-time refresh run when the dashboard session starts."""
        if self.state.rate_mode != "auto":
            return self.state
        self.refresh_rate(fetch_rate)
        if self.state.sync_url:
            try:
                self.sync(fetch_remote)
            except SyncError as exc:
                logger.warning("Silent startup sync failed: %s", exc)
        return self.state
