import pytest

from invest_dashboard import config
from invest_dashboard.backend.data_loader import JsonStore, load_state
from invest_dashboard.backend.models import AppState, BankAccount, PledgeRecord, Transaction
from invest_dashboard.backend.remote_sync import SyncError, SyncResult
from invest_dashboard.backend.state_manager import StateManager, parse_amount


def make_tx(tx_id, symbol="2330"):
    return Transaction(tx_id, "2024-01-02", "BUY", symbol, "國泰證券", 1.0, 100.0, "TWD")


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path)


@pytest.fixture
def manager(store):
    state = AppState(
        bank_accounts=(BankAccount("台新", 0.0, 1000.0, 0.0), BankAccount("國泰", 10.0, 0.0, 0.0)),
        prices={"2330": 600.0, "0050": 150.0},
        rates=dict(config.DEFAULT_EXCHANGE_RATES),
        sync_url="https://script.example.com/exec",
        theme="dark",
    )
    return StateManager(store, state)


def test_parse_amount_strips_commas():
    assert parse_amount("1,234.5") == 1234.5
    assert parse_amount("abc") == 0.0
    assert parse_amount("") == 0.0


def test_add_and_delete_transaction_persist(manager, store):
    manager.add_transaction(make_tx(1))
    manager.add_transaction(make_tx(2))
    assert [t.id for t in manager.state.transactions] == [2, 1]
    assert [t.id for t in load_state(store).transactions] == [2, 1]

    manager.delete_transaction(2)
    assert [t.id for t in load_state(store).transactions] == [1]
    assert manager.revision == 3


def test_add_transaction_with_taken_id_gets_next_free_id(manager):
    manager.add_transaction(make_tx(5))
    manager.add_transaction(make_tx(7))
    manager.add_transaction(make_tx(5, "0050"))
    assert [t.id for t in manager.state.transactions] == [8, 7, 5]
    assert manager.state.transactions[0].symbol == "0050"

    manager.delete_transaction(8)
    assert [t.id for t in manager.state.transactions] == [7, 5]


def test_update_bank_field_is_keyed_by_bank(manager):
    updated = manager.update_bank_field("台新", "twd", "2,500")
    assert updated == BankAccount("台新", 0.0, 2500.0, 0.0)
    assert manager.state.bank_accounts[1] == BankAccount("國泰", 10.0, 0.0, 0.0)
    assert manager.update_bank_field("不存在", "usd", "1") is None


def test_update_bank_field_rejects_unknown_field(manager):
    with pytest.raises(ValueError):
        manager.update_bank_field("台新", "bank", "x")


def test_add_pledge_appends(manager, store):
    record = PledgeRecord("2024-01-02", "2330", 1000.0, "元大證金", 600000.0, "2024-01-03",
                          300000.0, 0.0248, "2024-07-02")
    manager.add_pledge(record)
    assert load_state(store).pledges == (record,)


def test_apply_sync_replaces_collections_and_merges_quotes(manager):
    manager.add_transaction(make_tx(1))
    result = SyncResult(
        transactions=[make_tx(10, "0056")],
        prices={"0050": 155.0, "0056": 36.0},
        betas={"0056": 0.8},
        usd_rate=31.5,
    )
    state = manager.apply_sync(result)
    assert [t.id for t in state.transactions] == [10]
    assert state.prices == {"2330": 600.0, "0050": 155.0, "0056": 36.0}
    assert state.betas == {"0056": 0.8}
    assert state.rates["USD"] == 31.5
    assert state.rates["HKD"] == 4.1
    assert len(state.bank_accounts) == 2


def test_failed_sync_leaves_state_untouched(manager):
    before = manager.state

    def failing(url):
        raise SyncError("HTTP 錯誤 (500)")

    with pytest.raises(SyncError):
        manager.sync(failing)
    assert manager.state is before
    assert manager.revision == 0


def test_rate_refresh_only_applies_in_auto_mode(manager):
    manager.apply_rate_refresh(30.1)
    assert manager.state.rates["USD"] == 30.1

    manager.set_rate_mode("manual")
    manager.apply_rate_refresh(29.0)
    assert manager.state.rates["USD"] == 30.1

    manager.apply_rate_refresh(None)
    assert manager.state.rates["USD"] == 30.1


def test_invalid_settings_are_rejected(manager):
    with pytest.raises(ValueError):
        manager.set_rate_mode("sometimes")
    with pytest.raises(ValueError):
        manager.set_theme("neon")


def test_clear_all_keeps_preferences(manager, store):
    manager.add_transaction(make_tx(1))
    manager.set_exchange_rate("USD", 28.0)
    state = manager.clear_all()
    assert state.transactions == ()
    assert state.bank_accounts == ()
    assert state.prices == {}
    assert state.rates == config.DEFAULT_EXCHANGE_RATES
    assert state.sync_url == "https://script.example.com/exec"
    assert state.theme == "dark"
    assert load_state(store).transactions == ()


def test_startup_refreshes_rate_and_syncs_in_auto_mode(manager):
    calls = []

    def fetch_rate():
        calls.append("rate")
        return 31.9

    def fetch_remote(url):
        calls.append(url)
        return SyncResult(prices={"2330": 610.0})

    state = manager.startup(fetch_rate, fetch_remote)
    assert calls == ["rate", "https://script.example.com/exec"]
    assert state.rates["USD"] == 31.9
    assert state.prices["2330"] == 610.0


def test_startup_swallows_sync_failure(manager):
    def fetch_remote(url):
        raise SyncError("down")

    state = manager.startup(lambda: None, fetch_remote)
    assert state.rates["USD"] == config.DEFAULT_EXCHANGE_RATES["USD"]


def test_startup_does_nothing_in_manual_mode(manager):
    manager.set_rate_mode("manual")

    def unexpected(*args):
        raise AssertionError("should not be called")

    manager.startup(unexpected, unexpected)
