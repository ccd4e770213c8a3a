from fastapi import APIRouter, Request, Response
from coderplex.modules.theme.schemas import ThemeResponse, ThemeUpdate
from coderplex.modules.theme.service import (
    COLOR_SCHEME_HINT, THEME_COOKIE, persist_theme, resolve_theme, toggled
)

router = APIRouter(prefix="/theme", tags=["theme"])


def _current(request: Request):
    return resolve_theme(request.cookies.get(THEME_COOKIE), request.headers.get(COLOR_SCHEME_HINT))


@router.get("", response_model=ThemeResponse)
async def get_theme(request: Request, response: Response):
    """Saved theme, else the browser preference, else dark"""
    # Ask Chromium browsers to send the color-scheme hint on later requests
    response.headers["Accept-CH"] = "Sec-CH-Prefers-Color-Scheme"
    theme, source = _current(request)
    return ThemeResponse(theme=theme, source=source)


@router.put("", response_model=ThemeResponse)
async def set_theme(body: ThemeUpdate, response: Response):
    persist_theme(response, body.theme)
    return ThemeResponse(theme=body.theme, source="cookie")


@router.post("/toggle", response_model=ThemeResponse)
async def toggle_theme(request: Request, response: Response):
    theme, _ = _current(request)
    new_theme = toggled(theme)
    persist_theme(response, new_theme)
    return ThemeResponse(theme=new_theme, source="cookie")
