# src/config/themes.py — v1
"""Built-in UI theme presets.

A preset supplies colours and progress settings; anything the user sets
explicitly in [ui.colors] or [ui.progress] wins over the preset.
"""

from __future__ import annotations

from typing import Any

DEFAULT_THEME = "default"

_DEFAULT_COLORS = {
    "primary": "#3B82F6",
    "secondary": "#6366F1",
    "success": "#10B981",
    "warning": "#F59E0B",
    "error": "#EF4444",
    "text": "#F9FAFB",
    "muted": "#9CA3AF",
    "border": "#374151",
    "highlight": "#FBBF24",
}

_DEFAULT_PROGRESS = {
    "style": "gradient",
    "show_emoji": True,
    "animation": True,
    "enabled": True,
}

THEMES: dict[str, dict[str, Any]] = {
    "default": {
        "colors": _DEFAULT_COLORS,
        "progress": _DEFAULT_PROGRESS,
        "compact": False,
    },
    "dark": {
        "colors": {
            "primary": "#8B5CF6",
            "secondary": "#A78BFA",
            "success": "#34D399",
            "warning": "#FBBF24",
            "error": "#F87171",
            "text": "#E2E8F0",
            "muted": "#64748B",
            "border": "#1E293B",
            "highlight": "#FDE047",
        },
        "progress": _DEFAULT_PROGRESS,
        "compact": False,
    },
    "light": {
        "colors": {
            "primary": "#2563EB",
            "secondary": "#4F46E5",
            "success": "#059669",
            "warning": "#D97706",
            "error": "#DC2626",
            "text": "#1F2937",
            "muted": "#6B7280",
            "border": "#E5E7EB",
            "highlight": "#F59E0B",
        },
        "progress": {**_DEFAULT_PROGRESS, "style": "solid", "animation": False},
        "compact": False,
    },
    "cyberpunk": {
        "colors": {
            "primary": "#00FFFF",
            "secondary": "#FF00FF",
            "success": "#00FF00",
            "warning": "#FFFF00",
            "error": "#FF0040",
            "text": "#00FFFF",
            "muted": "#8A2BE2",
            "border": "#FF00FF",
            "highlight": "#FFFF00",
        },
        "progress": {**_DEFAULT_PROGRESS, "style": "rainbow", "show_emoji": False},
        "compact": False,
    },
    "minimal": {
        "colors": {
            "primary": "#000000",
            "secondary": "#404040",
            "success": "#008000",
            "warning": "#FFA500",
            "error": "#FF0000",
            "text": "#000000",
            "muted": "#808080",
            "border": "#C0C0C0",
            "highlight": "#0000FF",
        },
        "progress": {
            "style": "solid",
            "show_emoji": False,
            "animation": False,
            "enabled": False,
        },
        "compact": True,
    },
}


def apply_theme(ui: dict[str, Any]) -> dict[str, Any]:
    """Merge a raw [ui] table over its theme preset.

    Unknown theme names are left for validation to reject.
    """
    name = ui.get("theme") or DEFAULT_THEME
    preset = THEMES.get(name)
    if preset is None:
        return ui

    merged = dict(ui)
    merged["colors"] = {**preset["colors"], **(ui.get("colors") or {})}
    merged["progress"] = {**preset["progress"], **(ui.get("progress") or {})}
    merged.setdefault("compact", preset["compact"])
    return merged
