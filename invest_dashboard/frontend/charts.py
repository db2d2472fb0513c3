"""
Chart rendering functions for the Investment Dashboard
Handles Plotly chart creation and rendering.
"""

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from .. import config

CHART_HEIGHTS = config.CHART_HEIGHTS
CATEGORY_COLORS = config.CATEGORY_COLORS
THEME_COLORS = config.THEME_COLORS


def build_category_pie(chart_df: pd.DataFrame, theme: str = config.DEFAULT_THEME) -> go.Figure:
    palette = THEME_COLORS.get(theme, THEME_COLORS[config.DEFAULT_THEME])
    fig = go.Figure(go.Pie(
        labels=chart_df["category"],
        values=chart_df["value"],
        hole=0.55,
        marker=dict(colors=[CATEGORY_COLORS.get(c, CATEGORY_COLORS[config.CATEGORY_OTHER]) for c in chart_df["category"]]),
        textposition="outside",
        texttemplate="%{label} %{percent:.1%}",
        hovertemplate="%{label}: %{value:,.0f}<extra></extra>",
        sort=False,
    ))
    fig.update_layout(
        template=palette["plotly_template"],
        height=CHART_HEIGHTS["category"],
        margin=dict(l=10, r=10, t=10, b=10),
        showlegend=False,
        paper_bgcolor="rgba(0,0,0,0)",
    )
    return fig


def build_weight_bars(weights: dict, theme: str = config.DEFAULT_THEME) -> go.Figure:
    palette = THEME_COLORS.get(theme, THEME_COLORS[config.DEFAULT_THEME])
    names = list(config.CATEGORY_RULES)
    values = [weights.get(name, 0.0) for name in names]
    fig = go.Figure(go.Bar(
        x=values,
        y=[f"{name} ({config.CATEGORY_RULES[name]})" for name in names],
        orientation="h",
        marker_color=[CATEGORY_COLORS[name] for name in names],
        text=[f"{v:.1f}%" for v in values],
        textposition="auto",
    ))
    fig.update_layout(
        template=palette["plotly_template"],
        height=CHART_HEIGHTS["weights"],
        margin=dict(l=10, r=10, t=10, b=10),
        xaxis=dict(ticksuffix="%", range=[0, 100]),
        paper_bgcolor="rgba(0,0,0,0)",
    )
    return fig


def render_category_pie(chart_df: pd.DataFrame, theme: str) -> None:
    if chart_df.empty:
        st.info("尚無資產配置資料")
        return
    st.plotly_chart(build_category_pie(chart_df, theme), use_container_width=True, key="category_pie")


def render_weight_bars(weights: dict, theme: str) -> None:
    st.plotly_chart(build_weight_bars(weights, theme), use_container_width=True, key="category_weights")
