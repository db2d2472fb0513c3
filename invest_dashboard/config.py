"""
Configuration constants for the Investment Dashboard
"""

import os
from pathlib import Path

BASE_PATH = Path(__file__).parent.parent
STORAGE_PATH = Path(os.getenv("INVEST_DASHBOARD_STORAGE_DIR", str(BASE_PATH / "storage")))
LOG_LEVEL = os.getenv("INVEST_DASHBOARD_LOG_LEVEL", "INFO").upper()

STORAGE_KEYS = {
    "transactions": "my_transactions",
    "prices": "my_current_prices",
    "betas": "my_symbol_betas",
    "bank": "my_bank_data",
    "pledge": "my_pledge_data",
    "sync_url": "my_gas_url",
    "rates": "my_exchange_rates",
    "rate_mode": "my_rate_mode",
    "theme": "theme",
}

DEFAULT_EXCHANGE_RATES = {"USD": 32.5, "HKD": 4.1, "JPY": 0.22, "TWD": 1}
DEFAULT_RATE_MODE = "auto"
DEFAULT_THEME = "light"
RATE_MODES = ("manual", "auto")
THEMES = ("light", "dark")

RATE_API_URL = "https://open.er-api.com/v6/latest/USD"
REMOTE_RATE_FIELD = "匯率_USDTWD"

ACTION_BUY = "BUY"
ACTION_SELL = "SELL"
SELL_ALIASES = ("賣", "SELL", "S")
REMOTE_ACTION_LABELS = {ACTION_BUY: "買", ACTION_SELL: "賣"}

# Positions at or below this inventory are treated as closed.
INVENTORY_EPSILON = 1e-6
DEFAULT_BETA = 1.0

CATEGORY_CASH = "類現金"
CATEGORY_CORE = "原型"
CATEGORY_LEVERAGED = "槓桿"
CATEGORY_OTHER = "其他"
CATEGORIES = (CATEGORY_CORE, CATEGORY_LEVERAGED, CATEGORY_CASH, CATEGORY_OTHER)
CASH_BETA_CEILING = 0.5
LEVERAGED_BETA_FLOOR = 1.5

CATEGORY_COLORS = {
    CATEGORY_CORE: "#3b82f6",
    CATEGORY_LEVERAGED: "#a855f7",
    CATEGORY_CASH: "#22c55e",
    CATEGORY_OTHER: "#9ca3af",
}

CATEGORY_RULES = {
    CATEGORY_CORE: "beta 1.0",
    CATEGORY_LEVERAGED: "beta 2.0",
    CATEGORY_CASH: "beta 0",
}

BROKERS = ["國泰證券", "富邦證券", "元大證券", "台北富邦", "Firstrade"]
PLEDGE_BROKERS = ["元大證金", "國泰證券", "富邦證券", "元大證券", "台北富邦"]
CURRENCIES = ["TWD", "USD", "HKD", "JPY"]

DEFAULT_PLEDGE_RATE_PERCENT = 2.48
PLEDGE_TERM_MONTHS = 6
MAINTENANCE_SAFE = 166
MAINTENANCE_WARNING = 140
MAINTENANCE_CALL = 130

PAGE_CONFIG = {
    "page_title": "投資儀表板",
    "page_icon": None,
    "layout": "wide",
    "initial_sidebar_state": "expanded",
}

TAB_LABELS = ["交易紀錄", "資產總覽", "銀行", "質押"]

CHART_HEIGHTS = {
    "category": 360,
    "weights": 260,
}

COLORS = {
    "gain": "#ef4444",
    "loss": "#22c55e",
    "neutral": "#9ca3af",
    "safe": "#16a34a",
    "warning": "#ca8a04",
    "danger": "#dc2626",
    "info": "#2563eb",
}

THEME_COLORS = {
    "light": {
        "background": "#f9fafb",
        "surface": "#ffffff",
        "border": "#f3f4f6",
        "text": "#1f2937",
        "text_secondary": "#6b7280",
        "plotly_template": "plotly_white",
    },
    "dark": {
        "background": "#030712",
        "surface": "#111827",
        "border": "#1f2937",
        "text": "#f9fafb",
        "text_secondary": "#9ca3af",
        "plotly_template": "plotly_dark",
    },
}
