"""
Number formatting helpers for the Investment Dashboard
"""

import math
from typing import Optional

from .. import config

COLORS = config.COLORS


def format_money(value: Optional[float], min_digits: int = 0, max_digits: int = 2) -> str:
    if value is None:
        return "0"
    if math.isnan(value):
        return "NaN"
    text = f"{value:,.{max_digits}f}"
    if max_digits > min_digits and "." in text:
        whole, frac = text.split(".")
        frac = frac.rstrip("0")
        if len(frac) < min_digits:
            frac = frac.ljust(min_digits, "0")
        text = f"{whole}.{frac}" if frac else whole
    return text


def format_percent(value: float, digits: int = 2) -> str:
    return f"{value:.{digits}f}%"


def get_color(value: float) -> str:
    # Taiwan convention: gains red, losses green.
    if value > 0:
        return COLORS["gain"]
    if value < 0:
        return COLORS["loss"]
    return COLORS["neutral"]


def maintenance_color(ratio: float) -> str:
    if ratio < config.MAINTENANCE_WARNING:
        return COLORS["danger"]
    if ratio < config.MAINTENANCE_SAFE:
        return COLORS["warning"]
    return COLORS["safe"]
