"""
Auth Service
- Async client for the hosted identity service (Supabase GoTrue REST API)
- Holds the current session in memory (no persistence) and publishes
  (event, session) to listeners on sign-in, sign-out and token refresh
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from agri_app.errors import AuthError
from agri_app.models.models import AuthChangeEvent, AuthUser, Credentials, Session
from agri_app.utils.logger import get_logger, log_function

logger = get_logger(__name__)

AuthListener = Callable[[AuthChangeEvent, Optional[Session]], None]
Unsubscribe = Callable[[], None]

DEFAULT_TIMEOUT = 10.0
REFRESH_MARGIN_SECONDS = 60


def _error_message(response: httpx.Response) -> Tuple[str, Optional[str]]:
    """Pull a readable message and code out of a GoTrue error body"""
    try:
        body = response.json()
    except ValueError:
        return (response.text or response.reason_phrase or f"HTTP {response.status_code}", None)

    if not isinstance(body, dict):
        return (str(body), None)
    message = (
        body.get("error_description")
        or body.get("msg")
        or body.get("message")
        or body.get("error")
        or f"HTTP {response.status_code}"
    )
    code = body.get("error_code") or body.get("code") or body.get("error")
    return (str(message), str(code) if code is not None else None)


class AuthService:
    """Thin async wrapper around the identity service"""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Args:
            base_url: project URL, e.g. https://<ref>.supabase.co
            anon_key: public anon key sent as `apikey`
            client: preconfigured httpx client (tests pass a MockTransport client)
            timeout: request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._session: Optional[Session] = None
        self._listeners: List[AuthListener] = []

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def on_auth_state_change(self, listener: AuthListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: AuthChangeEvent, session: Optional[Session]):
        logger.info(f"Auth event: {event.value}")
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception as e:
                logger.error(f"Auth listener failed on {event.value}: {e}", exc_info=True)

    # =========================================================================
    # HTTP
    # =========================================================================

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/auth/v1{path}"
        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=self._headers(access_token)
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Identity service unreachable: {e}", cause=e) from e

        if response.status_code >= 400:
            message, code = _error_message(response)
            raise AuthError(message, status=response.status_code, code=code)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise AuthError("Malformed identity service response", status=response.status_code, cause=e) from e

    def _session_from(self, payload: Dict[str, Any]) -> Session:
        try:
            return Session.from_token_response(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise AuthError("Malformed session in identity service response", cause=e) from e

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    @log_function
    async def sign_in_with_password(self, credentials: Credentials) -> Session:
        payload = await self._request(
            "POST", "/token", params={"grant_type": "password"},
            json={"email": credentials.email, "password": credentials.password},
        )
        session = self._session_from(payload)
        self._session = session
        self._emit(AuthChangeEvent.SIGNED_IN, session)
        return session

    @log_function
    async def sign_up(self, credentials: Credentials) -> Tuple[AuthUser, Optional[Session]]:
        """
        Register a new account

        Returns:
            (user, session); session is None while email confirmation is pending
        """
        payload = await self._request(
            "POST", "/signup",
            json={"email": credentials.email, "password": credentials.password},
        )
        if payload.get("access_token"):
            session = self._session_from(payload)
            self._session = session
            self._emit(AuthChangeEvent.SIGNED_IN, session)
            return session.user, session

        user_payload = payload.get("user", payload)
        try:
            user = AuthUser.model_validate(user_payload)
        except ValueError as e:
            raise AuthError("Malformed user in signup response", cause=e) from e
        return user, None

    @log_function
    async def sign_out(self):
        """Revoke the session remotely; the local session is cleared either way"""
        session, self._session = self._session, None
        error: Optional[AuthError] = None
        if session is not None:
            try:
                await self._request("POST", "/logout", access_token=session.access_token)
            except AuthError as e:
                error = e
        self._emit(AuthChangeEvent.SIGNED_OUT, None)
        if error is not None:
            raise error

    async def refresh_session(self, refresh_token: Optional[str] = None) -> Session:
        token = refresh_token or (self._session.refresh_token if self._session else None)
        if not token:
            raise AuthError("No refresh token available", code="no_refresh_token")

        payload = await self._request(
            "POST", "/token", params={"grant_type": "refresh_token"},
            json={"refresh_token": token},
        )
        session = self._session_from(payload)
        self._session = session
        self._emit(AuthChangeEvent.TOKEN_REFRESHED, session)
        return session

    async def get_user(self, access_token: str) -> AuthUser:
        payload = await self._request("GET", "/user", access_token=access_token)
        try:
            return AuthUser.model_validate(payload)
        except ValueError as e:
            raise AuthError("Malformed user response", cause=e) from e

    async def get_session(self, refresh_token: Optional[str] = None) -> Optional[Session]:
        """
        Current valid session, renewing it when it is close to expiry

        A refresh token persisted by the browser can be passed to restore a
        session this process has not seen yet.
        """
        session = self._session
        if session is None:
            if not refresh_token:
                return None
            session = await self.refresh_session(refresh_token)
        elif session.expires_within(REFRESH_MARGIN_SECONDS):
            try:
                session = await self.refresh_session()
            except AuthError:
                self._session = None
                self._emit(AuthChangeEvent.SIGNED_OUT, None)
                raise
        return session

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()
