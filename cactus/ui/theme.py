"""Theme palettes. `primary` is the colour the tray heart fills with."""

THEME_PALETTES = {
    "pink": {
        "bg": "#FFE2F5",
        "card": "#FDB3DB",
        "stroke": "#BF6091",
        "accent": "#E47ED1",
        "primary": "#E91E63",
    },
    "green": {
        "bg": "#E0F2F1",
        "card": "#B2DFDB",
        "stroke": "#00695C",
        "accent": "#4DB6AC",
        "primary": "#2E7D32",
    },
    "neutral": {
        "bg": "#F3F3F3",
        "card": "#E8E8E8",
        "stroke": "#9E9E9E",
        "accent": "#BDBDBD",
        "primary": "#8C8C8C",
    },
    "blue": {
        "bg": "#E3F2FD",
        "card": "#90CAF9",
        "stroke": "#1565C0",
        "accent": "#42A5F5",
        "primary": "#1976D2",
    },
    "purple": {
        "bg": "#F3E5F5",
        "card": "#CE93D8",
        "stroke": "#6A1B9A",
        "accent": "#AB47BC",
        "primary": "#8E24AA",
    },
    "orange": {
        "bg": "#FFF3E0",
        "card": "#FFCC80",
        "stroke": "#E65100",
        "accent": "#FF9800",
        "primary": "#F57C00",
    },
}


def palette(name):
    return THEME_PALETTES.get(name, THEME_PALETTES["neutral"])


def glyph_color(name):
    return palette(name)["primary"]


def build_stylesheet(name):
    t = palette(name)
    return f"""
        QWidget#cactusRoot {{ background-color: {t['bg']}; }}
        QLabel {{ color: {t['stroke']}; }}
        QLabel#clockLabel {{ font-size: 32pt; font-weight: bold; }}
        QPushButton {{
            background-color: {t['card']};
            border: 1px solid {t['stroke']};
            border-radius: 6px;
            padding: 4px 10px;
            color: {t['stroke']};
        }}
        QPushButton:hover {{ background-color: {t['accent']}; }}
    """
