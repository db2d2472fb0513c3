"""
UI Components for the Investment Dashboard
Contains reusable Streamlit components and layout elements.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

import streamlit as st

from .. import config
from ..backend import models
from .formatting import format_money, format_percent, get_color, maintenance_color

COLORS = config.COLORS
THEME_COLORS = config.THEME_COLORS


def get_global_styles(theme: str = config.DEFAULT_THEME) -> str:
    palette = THEME_COLORS.get(theme, THEME_COLORS[config.DEFAULT_THEME])
    return f"""
    <style>
    @import url('https://fonts.googleapis.com/css2?family=Noto+Sans+TC:wght@400;600;800&display=swap');
    html, body, [class*="css"] {{ font-family: 'Noto Sans TC', sans-serif; }}
    .stApp {{ background: {palette['background']}; color: {palette['text']}; }}
    .metrics-bar {{ display:flex; gap:12px; flex-wrap:wrap; margin-bottom:20px; }}
    .metrics-card {{ flex:1; min-width:150px; background:{palette['surface']}; border:1px solid {palette['border']};
        border-radius:12px; padding:14px 16px; }}
    .metrics-card .label {{ color:{palette['text_secondary']}; font-size:0.8rem; }}
    .metrics-card .value {{ font-size:1.4rem; font-weight:800; font-family:monospace; }}
    </style>
    """


def build_metrics_bar_html(cards: List[Tuple[str, str, str]], theme: str = config.DEFAULT_THEME) -> str:
    palette = THEME_COLORS.get(theme, THEME_COLORS[config.DEFAULT_THEME])
    items = "".join(
        f'<div class="metrics-card"><div class="label">{label}</div>'
        f'<div class="value" style="color:{color or palette["text"]};">{value}</div></div>'
        for label, value, color in cards
    )
    return f'<div class="metrics-bar">{items}</div>'


def build_overview_cards(metrics: models.OverviewMetrics) -> List[Tuple[str, str, str]]:
    return [
        ("淨資產 (TWD)", format_money(metrics.net_worth, max_digits=0), COLORS["info"]),
        ("總資產", format_money(metrics.total_assets, max_digits=0), ""),
        ("總負債", format_money(metrics.total_liabilities, max_digits=0), COLORS["danger"]),
        ("股票市值", format_money(metrics.stock_market_value_twd, max_digits=0), ""),
        ("未實現損益", format_money(metrics.unrealized_pnl_twd, max_digits=0), get_color(metrics.unrealized_pnl_twd)),
        ("已實現損益", format_money(metrics.realized_pnl_twd, max_digits=0), get_color(metrics.realized_pnl_twd)),
    ]


def render_metrics_bar(cards: List[Tuple[str, str, str]], theme: str) -> None:
    st.markdown(build_metrics_bar_html(cards, theme), unsafe_allow_html=True)


def render_sidebar(state: models.AppState) -> Dict:
    """Render the settings sidebar and return the actions the user requested."""
    with st.sidebar:
        st.markdown("### 設定")
        dark = st.toggle("深色模式", value=state.theme == "dark")
        url = st.text_input("Google Apps Script 網址", value=state.sync_url)
        sync_clicked = st.button("從雲端同步資料", use_container_width=True)
        st.markdown("---")
        confirm_clear = st.checkbox("我了解清除後無法復原")
        clear_clicked = st.button("清除所有資料", type="primary", use_container_width=True, disabled=not confirm_clear)
    return {
        "theme": "dark" if dark else "light",
        "sync_url": url,
        "sync": sync_clicked,
        "clear": clear_clicked,
    }


def render_transaction_form() -> Optional[Dict]:
    with st.form("transaction_form", clear_on_submit=True):
        st.markdown("#### 新增交易")
        col1, col2 = st.columns(2)
        tx_date = col1.date_input("日期", value=date.today())
        action = col2.selectbox("動作", [config.ACTION_BUY, config.ACTION_SELL], format_func=lambda a: config.REMOTE_ACTION_LABELS[a])
        symbol = col1.text_input("代號")
        broker = col2.selectbox("券商", config.BROKERS)
        qty = col1.number_input("股數", min_value=0.0, step=1.0)
        price = col2.number_input("價格", min_value=0.0, step=0.01, format="%.4f")
        currency = st.selectbox("幣別", config.CURRENCIES)
        submitted = st.form_submit_button("新增", use_container_width=True)
    if not submitted or not symbol or not qty or not price:
        return None
    return {
        "date": tx_date.isoformat(),
        "action": action,
        "symbol": symbol,
        "broker": broker,
        "qty": qty,
        "price": price,
        "currency": currency,
    }


def render_pledge_form() -> Optional[Dict]:
    with st.form("pledge_form", clear_on_submit=True):
        st.markdown("#### 新增質押")
        col1, col2 = st.columns(2)
        transfer_date = col1.date_input("撥券日", value=date.today())
        broker = col2.selectbox("券商", config.PLEDGE_BROKERS)
        symbol = col1.text_input("代號", placeholder="2330")
        qty = col2.number_input("股數", min_value=0.0, step=1000.0)
        loan_date = col1.date_input("借款日", value=date.today())
        loan_amount = col2.number_input("借款金額", min_value=0.0, step=10000.0)
        rate = st.number_input("年利率 (%)", min_value=0.0, value=config.DEFAULT_PLEDGE_RATE_PERCENT, step=0.01)
        submitted = st.form_submit_button("新增紀錄", use_container_width=True)
    if not submitted or not symbol or not qty:
        return None
    return {
        "transfer_date": transfer_date.isoformat(),
        "symbol": symbol,
        "qty": qty,
        "broker": broker,
        "loan_date": loan_date.isoformat(),
        "loan_amount": loan_amount,
        "rate_percent": rate,
    }


def render_rate_card(state: models.AppState, bank: models.BankSummary) -> Dict:
    st.markdown("#### 現金 & 匯率")
    mode = st.radio(
        "匯率模式",
        config.RATE_MODES,
        index=config.RATE_MODES.index(state.rate_mode),
        format_func=lambda m: "手動" if m == "manual" else "自動",
        horizontal=True,
    )
    usd = state.rates.get("USD", 0.0)
    refresh_clicked = False
    if mode == "auto":
        col_rate, col_btn = st.columns([3, 1])
        col_rate.metric("USD 匯率", f"{usd:.2f}")
        refresh_clicked = col_btn.button("更新", use_container_width=True)
        new_rate = usd
    else:
        new_rate = st.number_input("USD 匯率", value=float(usd), step=0.01, format="%.2f")
    col1, col2, col3 = st.columns(3)
    col1.metric("TWD 總額", format_money(bank.twd, max_digits=0))
    col2.metric("USD 總額", format_money(bank.usd))
    col3.metric("約當台幣", format_money(bank.total_cash_twd, max_digits=0))
    return {"rate_mode": mode, "usd_rate": new_rate, "refresh": refresh_clicked}


def render_beta_box(portfolio_beta: float) -> None:
    st.metric("投資組合 Beta", f"{portfolio_beta:.2f}")


def render_pledge_summary(summary: models.PledgeSummary) -> None:
    col1, col2 = st.columns(2)
    col1.metric("總質押借款", format_money(summary.total_loan))
    color = maintenance_color(summary.ratio)
    col2.markdown(
        f'<div class="metrics-card"><div class="label">整戶維持率</div>'
        f'<div class="value" style="color:{color};">{format_percent(summary.ratio)}</div>'
        f'<div class="label">安全線 &gt; {config.MAINTENANCE_SAFE}% | 追繳線 &lt; {config.MAINTENANCE_CALL}%</div></div>',
        unsafe_allow_html=True,
    )
