from invest_dashboard import config
from invest_dashboard.frontend import components


def test_theme_css_includes_font():
    css = components.get_global_styles("light")
    assert "Noto Sans TC" in css
    assert config.THEME_COLORS["light"]["background"] in css


def test_dark_theme_css_uses_dark_palette():
    css = components.get_global_styles("dark")
    assert config.THEME_COLORS["dark"]["background"] in css


def test_unknown_theme_falls_back_to_default():
    assert components.get_global_styles("neon") == components.get_global_styles(config.DEFAULT_THEME)


def test_metrics_bar_markup():
    html = components.build_metrics_bar_html([
        ("淨資產", "1,000", config.COLORS["info"]),
        ("總負債", "0", ""),
    ])
    assert html.count("metrics-card") == 2
    assert "淨資產" in html
    assert config.COLORS["info"] in html
