import base64
import hashlib
import secrets
from typing import Any
from urllib.parse import urlencode

import httpx

from app.auth.exceptions import AuthError, NotAuthenticatedError
from app.auth.models import PkcePair, Session, User
from app.logging.logger import Log


def generate_pkce_pair() -> PkcePair:
    """Code verifier and its S256 challenge for the OAuth redirect flow."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return PkcePair(verifier=verifier, challenge=challenge)


class SupabaseAuthClient:
    """Session-based authentication against the platform's auth API (/auth/v1)."""

    def __init__(
        self,
        *,
        base_url: str,
        anon_key: str,
        timeout_seconds: int = 15,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._auth_url = f"{base_url.rstrip('/')}/auth/v1"
        self._anon_key = anon_key
        self._client = http_client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def authorize_url(self, provider: str, redirect_to: str, code_challenge: str) -> str:
        query = urlencode(
            {
                "provider": provider,
                "redirect_to": redirect_to,
                "code_challenge": code_challenge,
                "code_challenge_method": "s256",
            }
        )
        return f"{self._auth_url}/authorize?{query}"

    def exchange_code(self, auth_code: str, code_verifier: str) -> Session:
        payload = self._token("pkce", {"auth_code": auth_code, "code_verifier": code_verifier})
        session = Session.from_api(payload)
        Log.info(f"Signed in via OAuth: {session.user.email}")
        return session

    def sign_in_with_password(self, email: str, password: str) -> Session:
        payload = self._token("password", {"email": email, "password": password})
        session = Session.from_api(payload)
        Log.info(f"Signed in with password: {session.user.email}")
        return session

    def get_user(self, access_token: str) -> User:
        """Raises:
        NotAuthenticatedError: if the token is missing, expired or revoked.
        """
        response = self._send("GET", "/user", access_token=access_token)
        if response.status_code in (401, 403):
            raise NotAuthenticatedError("Session expired, please sign in again")
        self._raise_for_status(response, "fetching user")
        return User.from_api(response.json())

    def sign_out(self, access_token: str) -> None:
        response = self._send("POST", "/logout", access_token=access_token)
        # an already-invalid token means the session is gone either way
        if response.status_code in (401, 403, 404):
            return
        self._raise_for_status(response, "signing out")

    def _token(self, grant_type: str, body: dict[str, Any]) -> dict[str, Any]:
        response = self._send("POST", "/token", params={"grant_type": grant_type}, json=body)
        self._raise_for_status(response, "signing in")
        return response.json()

    def _send(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = {"apikey": self._anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            return self._client.request(
                method, f"{self._auth_url}{path}", headers=headers, **kwargs
            )
        except httpx.HTTPError as exc:
            raise AuthError(f"Auth service unreachable: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error_description") or body.get("msg") or message
        Log.error(f"Auth error while {action}: {response.status_code} {message}")
        raise AuthError(f"Error {action}: {message}")
