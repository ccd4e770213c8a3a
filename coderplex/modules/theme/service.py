"""Light/dark preference kept in a cookie, falling back to the browser's color-scheme hint."""
from typing import Optional, Tuple

from fastapi import Response

THEME_COOKIE = "theme"
COLOR_SCHEME_HINT = "sec-ch-prefers-color-scheme"
DEFAULT_THEME = "dark"
THEMES = ("light", "dark")
COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def resolve_theme(cookie_value: Optional[str], color_scheme_hint: Optional[str]) -> Tuple[str, str]:
    """Return (theme, source): saved cookie, then the client hint, then dark."""
    if cookie_value in THEMES:
        return cookie_value, "cookie"
    hint = (color_scheme_hint or "").strip().strip('"').lower()
    if hint in THEMES:
        return hint, "client-hint"
    return DEFAULT_THEME, "default"


def toggled(theme: str) -> str:
    return "light" if theme == "dark" else "dark"


def persist_theme(response: Response, theme: str) -> None:
    response.set_cookie(
        key=THEME_COOKIE,
        value=theme,
        max_age=COOKIE_MAX_AGE,
        samesite="lax",
        httponly=False,  # readable by the frontend before first paint
    )
