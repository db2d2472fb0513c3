"""
Main Streamlit application for the Investment Dashboard
"""

import logging
import os
import sys

import pandas as pd
import streamlit as st

try:
    from . import config
    from .backend import data_processor
    from .backend.data_loader import JsonStore
    from .backend.remote_sync import (
        SyncError,
        fetch_remote_snapshot,
        fetch_usd_twd_rate,
        push_bank_account,
        push_pledge,
        push_transaction,
    )
    from .backend.state_manager import StateManager
    from .frontend import components, tables, charts
    from .frontend.formatting import format_money
except ImportError:
    sys.path.append(os.path.dirname(os.path.dirname(__file__)))
    from invest_dashboard import config
    from invest_dashboard.backend import data_processor
    from invest_dashboard.backend.data_loader import JsonStore
    from invest_dashboard.backend.remote_sync import (
        SyncError,
        fetch_remote_snapshot,
        fetch_usd_twd_rate,
        push_bank_account,
        push_pledge,
        push_transaction,
    )
    from invest_dashboard.backend.state_manager import StateManager
    from invest_dashboard.frontend import components, tables, charts
    from invest_dashboard.frontend.formatting import format_money


def get_manager() -> StateManager:
    if "manager" not in st.session_state:
        manager = StateManager(JsonStore())
        manager.startup(fetch_usd_twd_rate, fetch_remote_snapshot)
        st.session_state["manager"] = manager
    return st.session_state["manager"]


def _push(push, *args, success: str) -> None:
    url = get_manager().state.sync_url
    if not url:
        return
    try:
        push(url, *args)
        st.toast(success)
    except SyncError:
        st.toast("雲端同步失敗，已存於本地")


def handle_sidebar(manager: StateManager) -> None:
    actions = components.render_sidebar(manager.state)
    if actions["theme"] != manager.state.theme:
        manager.set_theme(actions["theme"])
        st.rerun()
    if actions["sync_url"].strip() != manager.state.sync_url:
        manager.set_sync_url(actions["sync_url"])
    if actions["sync"]:
        try:
            manager.sync(fetch_remote_snapshot)
            st.toast("資料同步成功！")
        except SyncError as exc:
            st.error(f"同步失敗：{exc}")
    if actions["clear"]:
        manager.clear_all()
        st.toast("所有資料已清除")
        st.rerun()


def render_transactions_tab(manager: StateManager) -> None:
    col_form, col_list = st.columns([1, 2])
    with col_form:
        form = components.render_transaction_form()
        if form:
            tx = data_processor.build_transaction(**form)
            manager.add_transaction(tx)
            _push(push_transaction, manager.state.transactions[0], success="已新增並同步至雲端")
    with col_list:
        st.markdown("#### 交易紀錄")
        to_delete = tables.render_transactions_table(manager.state.transactions)
        if to_delete is not None:
            manager.delete_transaction(to_delete)
            st.toast("紀錄已移除")
            st.rerun()


def render_overview_tab(manager: StateManager) -> None:
    state = manager.state
    items = data_processor.calculate_portfolio(state.transactions, state.prices, state.betas, state.rates)
    metrics = data_processor.compute_overview_metrics(
        items, state.bank_accounts, state.pledges, state.rates, state.prices
    )

    col_rate, col_beta = st.columns([2, 1])
    with col_rate:
        rate_actions = components.render_rate_card(state, metrics.bank)
    with col_beta:
        components.render_beta_box(metrics.portfolio_beta)

    if rate_actions["rate_mode"] != state.rate_mode:
        manager.set_rate_mode(rate_actions["rate_mode"])
        st.rerun()
    if rate_actions["refresh"]:
        manager.refresh_rate(fetch_usd_twd_rate)
        st.rerun()
    if state.rate_mode == "manual" and rate_actions["usd_rate"] != state.rates.get("USD"):
        manager.set_exchange_rate("USD", float(rate_actions["usd_rate"] or 0))
        st.rerun()

    components.render_metrics_bar(components.build_overview_cards(metrics), state.theme)

    col_pie, col_bars = st.columns(2)
    with col_pie:
        charts.render_category_pie(data_processor.category_chart_data(metrics), state.theme)
    with col_bars:
        charts.render_weight_bars(metrics.category_weights, state.theme)

    st.markdown("#### 持股明細")
    tables.render_positions_table(metrics.active_items, metrics.allocations)
    tables.render_closed_positions_table(metrics.closed_items)


def render_bank_tab(manager: StateManager) -> None:
    summary = data_processor.summarize_bank(manager.state.bank_accounts, manager.state.rates)
    col1, col2 = st.columns(2)
    col1.metric("銀行總餘額 (USD)", format_money(summary.usd))
    col2.metric("銀行總餘額 (TWD)", format_money(summary.twd, max_digits=0))

    edited = tables.render_bank_editor(manager.state.bank_accounts)
    if edited.empty:
        return
    current = {a.bank: a for a in manager.state.bank_accounts}
    for row in edited.to_dict("records"):
        account = current.get(row["bank"])
        if account is None:
            continue
        for field_name in ("usd", "twd", "loan"):
            value = row[field_name]
            if pd.isna(value) or float(value) == getattr(account, field_name):
                continue
            updated = manager.update_bank_field(account.bank, field_name, str(value))
            if updated is not None:
                _push(push_bank_account, updated, success=f"已儲存 {account.bank} 的資料")


def render_pledge_tab(manager: StateManager) -> None:
    summary = data_processor.summarize_pledges(manager.state.pledges, manager.state.prices)
    components.render_pledge_summary(summary)

    col_form, col_list = st.columns([1, 2])
    with col_form:
        form = components.render_pledge_form()
        if form:
            record = data_processor.build_pledge(current_prices=manager.state.prices, **form)
            manager.add_pledge(record)
            _push(push_pledge, record, success="質押紀錄已新增")
    with col_list:
        tables.render_pledge_table(manager.state.pledges, manager.state.prices)


def main() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    st.set_page_config(**config.PAGE_CONFIG)

    manager = get_manager()
    handle_sidebar(manager)
    st.markdown(components.get_global_styles(manager.state.theme), unsafe_allow_html=True)

    tabs = st.tabs(config.TAB_LABELS)
    with tabs[0]:
        render_transactions_tab(manager)
    with tabs[1]:
        render_overview_tab(manager)
    with tabs[2]:
        render_bank_tab(manager)
    with tabs[3]:
        render_pledge_tab(manager)


if __name__ == "__main__":
    main()
