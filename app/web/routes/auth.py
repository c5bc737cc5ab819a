from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.auth.client import generate_pkce_pair
from app.auth.exceptions import AuthError
from app.auth.models import Session, User
from app.web.container import Container
from app.web.dependencies import get_container, require_user, session_token
from app.web.notices import Notice, with_notices
from app.web.schemas import SignInRequest

PKCE_COOKIE_NAME = "pkce_verifier"
PKCE_COOKIE_MAX_AGE = 600

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response, container: Container, session: Session) -> None:
    response.set_cookie(
        container.settings.session_cookie_name,
        session.access_token,
        httponly=True,
        samesite="lax",
        secure=container.settings.app_env != "dev",
    )


def _user_payload(user: User) -> dict:
    return {"user": {"id": user.id, "email": user.email}}


@router.get("/login")
def login(provider: str | None = None, container: Container = Depends(get_container)):
    """Start the OAuth redirect flow."""
    pkce = generate_pkce_pair()
    url = container.auth.authorize_url(
        provider or container.settings.auth_provider,
        container.settings.auth_redirect_url,
        pkce.challenge,
    )
    response = RedirectResponse(url, status_code=303)
    response.set_cookie(
        PKCE_COOKIE_NAME, pkce.verifier, max_age=PKCE_COOKIE_MAX_AGE, httponly=True, samesite="lax"
    )
    return response


@router.get("/callback")
def callback(
    request: Request,
    code: str | None = None,
    container: Container = Depends(get_container),
):
    verifier = request.cookies.get(PKCE_COOKIE_NAME)
    if not code or not verifier:
        raise AuthError("Missing authorization code")
    session = container.auth.exchange_code(code, verifier)
    response = RedirectResponse("/", status_code=303)
    _set_session_cookie(response, container, session)
    response.delete_cookie(PKCE_COOKIE_NAME)
    return response


@router.post("/sign-in")
def sign_in(body: SignInRequest, container: Container = Depends(get_container)):
    session = container.auth.sign_in_with_password(body.email, body.password)
    response = JSONResponse(
        with_notices(_user_payload(session.user), Notice("Signed in", f"Welcome back, {session.user.email}"))
    )
    _set_session_cookie(response, container, session)
    return response


@router.post("/sign-out")
def sign_out(
    token: str | None = Depends(session_token),
    container: Container = Depends(get_container),
):
    if token:
        container.auth.sign_out(token)
    response = JSONResponse(with_notices({}, Notice("Signed out", "You have been signed out")))
    response.delete_cookie(container.settings.session_cookie_name)
    return response


@router.get("/session")
def current_session(user: User = Depends(require_user)) -> dict:
    return with_notices(_user_payload(user))
