from enum import Enum

THEME_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


def resolve_theme(stored: str | None) -> Theme:
    """The saved selection, or ``system`` when unset or unrecognised."""
    try:
        return Theme(stored) if stored else Theme.SYSTEM
    except ValueError:
        return Theme.SYSTEM


def system_prefers_dark(color_scheme_hint: str | None) -> bool:
    """Read the ``Sec-CH-Prefers-Color-Scheme`` client hint."""
    return (color_scheme_hint or "").strip().strip('"').lower() == "dark"


def effective_theme(selected: Theme, prefers_dark: bool) -> Theme:
    """Concrete light/dark theme to render."""
    if selected is Theme.SYSTEM:
        return Theme.DARK if prefers_dark else Theme.LIGHT
    return selected
