"""Built-in style presets applied onto a project before export."""

from __future__ import annotations

from typing import Any, Dict, List

from .contracts import Project, ProjectStyle


# canvas size and logo source stay with the project; everything else is replaced.
DEFAULT_PRESETS: Dict[str, Dict[str, Any]] = {
    "minimal": {
        "showDate": False,
        "showSmallTitle": False,
        "smallTitlePosition": "top-left",
        "showHeadline": True,
        "showTags": False,
        "enableOverlay": False,
        "overlayOpacity": 30,
        "enableTextBackground": False,
        "fontSettings": {
            "fontFamily": "Pretendard, sans-serif",
            "smallTitleFontSize": 24,
            "headlineFontSize": 48,
            "tagsFontSize": 20,
            "fontColor": "#FFFFFF",
            "fontWeight": "medium",
        },
        "textBoxSettings": {
            "style": "none",
            "position": "bottom-left",
            "backgroundColor": "#000000",
            "backgroundOpacity": 0,
            "gradientEndColor": "#FFFFFF",
            "borderColor": "#FFFFFF",
            "borderWidth": 0,
            "borderRadius": 0,
            "padding": 24,
        },
        "logoPosition": "top-left",
    },
    "bold": {
        "showDate": True,
        "showSmallTitle": True,
        "smallTitlePosition": "top-left",
        "showHeadline": True,
        "showTags": True,
        "enableOverlay": True,
        "overlayOpacity": 40,
        "enableTextBackground": True,
        "fontSettings": {
            "fontFamily": "Pretendard, sans-serif",
            "smallTitleFontSize": 28,
            "headlineFontSize": 72,
            "tagsFontSize": 28,
            "fontColor": "#FFFFFF",
            "fontWeight": "extrabold",
        },
        "textBoxSettings": {
            "style": "solid",
            "position": "bottom-left",
            "backgroundColor": "#000000",
            "backgroundOpacity": 90,
            "gradientEndColor": "#FFFFFF",
            "borderColor": "#FFFFFF",
            "borderWidth": 0,
            "borderRadius": 16,
            "padding": 32,
        },
        "logoPosition": "top-left",
    },
    "gradient": {
        "showDate": False,
        "showSmallTitle": True,
        "smallTitlePosition": "top-center",
        "showHeadline": True,
        "showTags": True,
        "enableOverlay": False,
        "overlayOpacity": 30,
        "enableTextBackground": True,
        "fontSettings": {
            "fontFamily": "Pretendard, sans-serif",
            "smallTitleFontSize": 24,
            "headlineFontSize": 56,
            "tagsFontSize": 24,
            "fontColor": "#FFFFFF",
            "fontWeight": "bold",
        },
        "textBoxSettings": {
            "style": "gradient",
            "position": "bottom-center",
            "backgroundColor": "#6366F1",
            "backgroundOpacity": 85,
            "gradientEndColor": "#EC4899",
            "borderColor": "#FFFFFF",
            "borderWidth": 0,
            "borderRadius": 24,
            "padding": 28,
        },
        "logoPosition": "top-right",
    },
    "outline": {
        "showDate": True,
        "showSmallTitle": True,
        "smallTitlePosition": "top-left",
        "showHeadline": True,
        "showTags": True,
        "enableOverlay": False,
        "overlayOpacity": 30,
        "enableTextBackground": True,
        "fontSettings": {
            "fontFamily": "Pretendard, sans-serif",
            "smallTitleFontSize": 22,
            "headlineFontSize": 52,
            "tagsFontSize": 22,
            "fontColor": "#FFFFFF",
            "fontWeight": "semibold",
        },
        "textBoxSettings": {
            "style": "outline",
            "position": "middle-center",
            "backgroundColor": "#000000",
            "backgroundOpacity": 50,
            "gradientEndColor": "#FFFFFF",
            "borderColor": "#FFFFFF",
            "borderWidth": 3,
            "borderRadius": 0,
            "padding": 32,
        },
        "logoPosition": "top-left",
    },
}


def list_presets() -> List[str]:
    return sorted(DEFAULT_PRESETS)


def apply_preset(project: Project, name: str) -> Project:
    """Return a copy of ``project`` with the named preset's style applied."""
    key = str(name or "").strip().lower()
    if key not in DEFAULT_PRESETS:
        raise KeyError(f"unknown preset: {name}")
    style = ProjectStyle.model_validate(DEFAULT_PRESETS[key])
    updates = {field: getattr(style, field) for field in _preset_fields()}
    return project.model_copy(update=updates, deep=True)


def _preset_fields() -> List[str]:
    return [name for name in ProjectStyle.model_fields if name not in {"template_type", "logo_src"}]
