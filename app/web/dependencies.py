from fastapi import Depends, Request

from app.auth.exceptions import NotAuthenticatedError
from app.auth.models import User
from app.web.container import Container
from app.web.state import DashboardState


def get_container(request: Request) -> Container:
    return request.app.state.container


def session_token(request: Request, container: Container = Depends(get_container)) -> str | None:
    return request.cookies.get(container.settings.session_cookie_name)


def require_user(
    token: str | None = Depends(session_token),
    container: Container = Depends(get_container),
) -> User:
    """Raises:
    NotAuthenticatedError: if there is no session cookie or it is no longer valid.
    """
    if not token:
        raise NotAuthenticatedError("Please sign in to continue")
    return container.auth.get_user(token)


def dashboard_state(
    user: User = Depends(require_user),
    container: Container = Depends(get_container),
) -> DashboardState:
    return container.states.for_user(user.id)
