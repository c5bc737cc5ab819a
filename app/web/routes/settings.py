from fastapi import APIRouter, Depends, Header, Request, Response

from app.preferences.theme import (
    THEME_COOKIE_MAX_AGE,
    Theme,
    effective_theme,
    resolve_theme,
    system_prefers_dark,
)
from app.web.container import Container
from app.web.dependencies import get_container
from app.web.notices import Notice, with_notices
from app.web.schemas import ThemeRequest

COLOR_SCHEME_HINT = "Sec-CH-Prefers-Color-Scheme"

router = APIRouter(prefix="/settings", tags=["settings"])


def _theme_payload(selected: Theme, color_scheme_hint: str | None) -> dict:
    return {
        "theme": selected.value,
        "effective": effective_theme(selected, system_prefers_dark(color_scheme_hint)).value,
    }


@router.get("/theme")
def get_theme(
    request: Request,
    response: Response,
    sec_ch_prefers_color_scheme: str | None = Header(None),
    container: Container = Depends(get_container),
) -> dict:
    selected = resolve_theme(request.cookies.get(container.settings.theme_cookie_name))
    response.headers["Accept-CH"] = COLOR_SCHEME_HINT
    response.headers["Vary"] = COLOR_SCHEME_HINT
    return with_notices(_theme_payload(selected, sec_ch_prefers_color_scheme))


@router.put("/theme")
def set_theme(
    body: ThemeRequest,
    response: Response,
    sec_ch_prefers_color_scheme: str | None = Header(None),
    container: Container = Depends(get_container),
) -> dict:
    response.set_cookie(
        container.settings.theme_cookie_name,
        body.theme.value,
        max_age=THEME_COOKIE_MAX_AGE,
        samesite="lax",
    )
    return with_notices(
        _theme_payload(body.theme, sec_ch_prefers_color_scheme),
        Notice("Theme Updated", f"Theme has been set to {body.theme.value} mode"),
    )
