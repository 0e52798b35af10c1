"""Layout rules for the card surface, emitted as CSS.

The surface script only binds payload values onto data attributes and CSS
custom properties; every positioning rule lives in the tables below.
"""

from __future__ import annotations

from typing import Dict, List

from core import FontWeight, GridPosition, LogoPosition, TextBoxStyle


CONTENT_PADDING = "120px 60px 140px 60px"
LOGO_WIDTH_PX = 180
LOGO_INSET_PX = 60

LOGO_ANCHORS: Dict[LogoPosition, Dict[str, str]] = {
    LogoPosition.TOP_LEFT: {"top": f"{LOGO_INSET_PX}px", "left": f"{LOGO_INSET_PX}px"},
    LogoPosition.TOP_RIGHT: {"top": f"{LOGO_INSET_PX}px", "right": f"{LOGO_INSET_PX}px"},
    LogoPosition.BOTTOM_RIGHT: {"bottom": f"{LOGO_INSET_PX}px", "right": f"{LOGO_INSET_PX}px"},
    LogoPosition.BOTTOM_CENTER: {
        "bottom": f"{LOGO_INSET_PX}px",
        "left": "50%",
        "transform": "translateX(-50%)",
    },
}

_ROW_JUSTIFY = {"top": "flex-start", "middle": "center", "bottom": "flex-end"}
_COLUMN_ALIGN = {"left": "flex-start", "center": "center", "right": "flex-end"}

FONT_WEIGHTS: Dict[FontWeight, int] = {
    FontWeight.NORMAL: 400,
    FontWeight.MEDIUM: 500,
    FontWeight.SEMIBOLD: 600,
    FontWeight.BOLD: 700,
    FontWeight.EXTRABOLD: 800,
}

_BOXED = {
    "padding": "var(--tb-padding)",
    "border-radius": "var(--tb-radius)",
}

TEXT_BOX_RULES: Dict[TextBoxStyle, Dict[str, str]] = {
    TextBoxStyle.NONE: {"background": "transparent", "border": "none", "padding": "0"},
    TextBoxStyle.SOLID: {"background": "var(--tb-bg)", "border": "none", **_BOXED},
    TextBoxStyle.OUTLINE: {
        "background": "transparent",
        "border": "var(--tb-border-width) solid var(--tb-border-color)",
        **_BOXED,
    },
    TextBoxStyle.GRADIENT: {
        "background": "linear-gradient(135deg, var(--tb-bg), var(--tb-gradient-end))",
        "border": "none",
        **_BOXED,
    },
    TextBoxStyle.BLUR: {
        "background": "var(--tb-bg)",
        "backdrop-filter": "blur(12px)",
        "-webkit-backdrop-filter": "blur(12px)",
        "border": "none",
        **_BOXED,
    },
}


def logo_anchor_rules(position: LogoPosition) -> Dict[str, str]:
    return dict(LOGO_ANCHORS[LogoPosition(position)])


def grid_anchor_rules(position: GridPosition) -> Dict[str, str]:
    """Flex placement for a layer anchored at one of the 9 grid cells."""
    anchor = GridPosition(position)
    return {
        "justify-content": _ROW_JUSTIFY[anchor.row],
        "align-items": _COLUMN_ALIGN[anchor.column],
        "text-align": anchor.column,
    }


def text_box_rules(style: TextBoxStyle) -> Dict[str, str]:
    return dict(TEXT_BOX_RULES[TextBoxStyle(style)])


def _block(selector: str, rules: Dict[str, str]) -> str:
    body = "; ".join(f"{key}: {value}" for key, value in rules.items())
    return f"{selector} {{ {body}; }}"


def surface_stylesheet() -> str:
    """Full stylesheet for the render surface page."""
    blocks: List[str] = [
        _block("html, body", {"margin": "0", "padding": "0", "background": "#000", "overflow": "hidden"}),
        _block(
            "#card",
            {
                "position": "relative",
                "width": "100vw",
                "height": "100vh",
                "overflow": "hidden",
                "background": "#000",
                "color": "var(--font-color)",
                "font-family": "var(--font-family)",
            },
        ),
        _block(
            ".card__background",
            {"position": "absolute", "inset": "0", "width": "100%", "height": "100%", "object-fit": "cover"},
        ),
        _block(
            ".card__placeholder",
            {
                "position": "absolute",
                "inset": "0",
                "display": "flex",
                "align-items": "center",
                "justify-content": "center",
                "background": "#262626",
                "color": "#525252",
                "font-size": "36px",
            },
        ),
        _block(".card__overlay", {"position": "absolute", "inset": "0", "background": "#000", "opacity": "var(--overlay-opacity)"}),
        _block(
            ".card__logo",
            {"position": "absolute", "z-index": "20", "width": f"{LOGO_WIDTH_PX}px", "object-fit": "contain"},
        ),
        _block(
            ".card__layer",
            {
                "position": "absolute",
                "inset": "0",
                "display": "flex",
                "flex-direction": "column",
                "padding": CONTENT_PADDING,
                "box-sizing": "border-box",
            },
        ),
        _block(
            ".card__date",
            {
                "position": "absolute",
                "top": f"{LOGO_INSET_PX}px",
                "left": f"{LOGO_INSET_PX}px",
                "font-size": "20px",
                "font-weight": "500",
                "opacity": "0.9",
            },
        ),
        _block(".card__small-title", {"font-size": "var(--small-title-size)", "letter-spacing": "0.02em"}),
        _block(".card__textbox", {"display": "flex", "flex-direction": "column", "gap": "24px", "max-width": "100%", "box-sizing": "border-box"}),
        _block(
            ".card__headline",
            {
                "margin": "0",
                "font-size": "var(--headline-size)",
                "line-height": "1.1",
                "white-space": "pre-wrap",
                "display": "-webkit-box",
                "-webkit-line-clamp": "3",
                "-webkit-box-orient": "vertical",
                "overflow": "hidden",
            },
        ),
        _block(".card__tags", {"display": "flex", "flex-wrap": "wrap", "gap": "8px 16px", "font-size": "var(--tags-size)"}),
        _block("[hidden]", {"display": "none !important"}),
    ]

    for position in LogoPosition:
        blocks.append(_block(f'.card__logo[data-position="{position.value}"]', logo_anchor_rules(position)))
    for position in GridPosition:
        blocks.append(_block(f'.card__layer[data-anchor="{position.value}"]', grid_anchor_rules(position)))
    for style in TextBoxStyle:
        blocks.append(_block(f'.card__textbox[data-style="{style.value}"]', text_box_rules(style)))
    for weight, value in FONT_WEIGHTS.items():
        blocks.append(_block(f'#card[data-font-weight="{weight.value}"] .card__headline', {"font-weight": str(value)}))

    return "\n".join(blocks)
