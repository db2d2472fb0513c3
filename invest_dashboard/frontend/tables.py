"""
Table rendering functions for the Investment Dashboard
Handles DataFrame display and formatting.
"""

from typing import Dict, Mapping, Optional, Sequence

import pandas as pd
import streamlit as st

from ..backend import models
from ..backend.data_processor import pledge_maintenance_ratio, portfolio_to_frame, transactions_to_frame
from .formatting import format_money

POSITION_FORMATS = {
    "Beta": "{:.2f}",
    "庫存": "{:,.0f}",
    "均價": "{:,.2f}",
    "現價": "{:,.2f}",
    "市值(TWD)": "{:,.0f}",
    "未實現損益(TWD)": "{:,.0f}",
    "報酬率%": "{:.2f}%",
    "已實現損益": "{:,.0f}",
    "佔比%": "{:.1f}%",
}


def render_positions_table(items: Sequence[models.PortfolioItem], allocations: Mapping[str, float]) -> None:
    df = portfolio_to_frame(items, allocations)
    if df.empty:
        st.info("目前沒有持股")
        return
    st.dataframe(df.style.format(POSITION_FORMATS), use_container_width=True, hide_index=True)


def render_closed_positions_table(items: Sequence[models.PortfolioItem]) -> None:
    with st.expander(f"已出清 ({len(items)})", expanded=False):
        if not items:
            st.info("沒有已出清的標的")
            return
        rows = [
            {"代號": p.symbol, "幣別": p.currency, "賣出股數": p.sold_qty, "已實現損益": p.realized_pnl}
            for p in items
        ]
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


def render_transactions_table(transactions: Sequence[models.Transaction]) -> Optional[int]:
    """Show the history and return the id the user asked to delete, if any."""
    df = transactions_to_frame(transactions)
    if df.empty:
        st.info("尚無交易紀錄")
        return None
    st.dataframe(df.drop(columns=["id"]), use_container_width=True, hide_index=True)
    labels: Dict[int, str] = {
        tx.id: f"{tx.date} {tx.action} {tx.symbol} {format_money(tx.qty)} @ {format_money(tx.price)}"
        for tx in transactions
    }
    col_pick, col_btn = st.columns([4, 1])
    selected = col_pick.selectbox("刪除本地紀錄", list(labels), format_func=labels.get, label_visibility="collapsed")
    if col_btn.button("刪除", use_container_width=True):
        return selected
    return None


def render_bank_editor(accounts: Sequence[models.BankAccount]) -> pd.DataFrame:
    if not accounts:
        st.info("尚無銀行資料，請先從雲端同步")
        return pd.DataFrame()
    df = pd.DataFrame([a.to_dict() for a in accounts])
    return st.data_editor(
        df,
        disabled=["bank"],
        hide_index=True,
        use_container_width=True,
        key="bank_editor",
        column_config={
            "bank": "銀行",
            "usd": st.column_config.NumberColumn("USD", format="%.2f"),
            "twd": st.column_config.NumberColumn("TWD", format="%.0f"),
            "loan": st.column_config.NumberColumn("貸款", format="%.0f"),
        },
    )


def pledge_rows(pledges: Sequence[models.PledgeRecord], current_prices: Mapping[str, float]) -> pd.DataFrame:
    rows = [
        {
            "撥券日": p.transfer_date,
            "借款日": p.loan_date,
            "代號": p.symbol,
            "股數": p.qty,
            "券商": p.broker,
            "借款金額": p.loan_amount,
            "利率%": p.rate * 100,
            "維持率%": pledge_maintenance_ratio(p, current_prices),
            "到期日": p.repayment_date,
        }
        for p in pledges
    ]
    return pd.DataFrame(rows)


def render_pledge_table(pledges: Sequence[models.PledgeRecord], current_prices: Mapping[str, float]) -> None:
    df = pledge_rows(pledges, current_prices)
    if df.empty:
        st.info("目前沒有質押資料")
        return
    st.dataframe(
        df.style.format({"股數": "{:,.0f}", "借款金額": "{:,.0f}", "利率%": "{:.2f}", "維持率%": "{:.1f}"}),
        use_container_width=True,
        hide_index=True,
    )
