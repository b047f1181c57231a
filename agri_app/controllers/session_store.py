"""
Identity Session Store
Holds the current-user state for one client and fans auth changes out to
subscribers. Sign-in/up/out only delegate to the auth service; the status
changes when the service reports the event back through the subscription.
"""
from typing import Callable, List, Optional, Tuple

import httpx

from agri_app.errors import AuthError
from agri_app.models.models import AuthChangeEvent, AuthStatus, AuthUser, Credentials, Session
from agri_app.services.auth_service import AuthService, Unsubscribe
from agri_app.utils.logger import get_logger

logger = get_logger(__name__)

SessionListener = Callable[[Optional[Session]], None]


class SessionStore:

    def __init__(self, auth: AuthService):
        self.auth = auth
        self.status: AuthStatus = AuthStatus.UNKNOWN
        self.session: Optional[Session] = None
        self._listeners: List[SessionListener] = []
        self._auth_unsubscribe: Optional[Unsubscribe] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def mount(self):
        """Attach to the auth service change feed; once per store"""
        if self._auth_unsubscribe is not None:
            raise RuntimeError("SessionStore is already mounted")
        self._auth_unsubscribe = self.auth.on_auth_state_change(self._on_auth_event)

    def unmount(self):
        if self._auth_unsubscribe is not None:
            self._auth_unsubscribe()
            self._auth_unsubscribe = None
        self._listeners.clear()

    @property
    def mounted(self) -> bool:
        return self._auth_unsubscribe is not None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def user(self) -> Optional[AuthUser]:
        return self.session.user if self.session else None

    @property
    def is_resolving(self) -> bool:
        return self.status in (AuthStatus.UNKNOWN, AuthStatus.LOADING)

    @property
    def can_render_protected(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED

    def subscribe(self, on_change: SessionListener) -> Unsubscribe:
        self._listeners.append(on_change)

        def unsubscribe():
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return unsubscribe

    def _apply(self, session: Optional[Session]):
        new_status = AuthStatus.AUTHENTICATED if session is not None else AuthStatus.ANONYMOUS
        if new_status != self.status:
            logger.info(f"Session status {self.status.value} -> {new_status.value}")
        self.status = new_status
        self.session = session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception as e:
                logger.error(f"Session listener failed: {e}", exc_info=True)

    def _on_auth_event(self, event: AuthChangeEvent, session: Optional[Session]):
        if event == AuthChangeEvent.SIGNED_OUT:
            session = None
        self._apply(session)

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def restore_session(self, refresh_token: Optional[str] = None) -> Optional[Session]:
        """
        Resolve the startup status

        Transport and auth failures are treated as "no session".
        """
        self.status = AuthStatus.LOADING
        try:
            session = await self.auth.get_session(refresh_token)
        except (AuthError, httpx.HTTPError) as e:
            logger.warning(f"Session restore failed, continuing anonymous: {e}")
            session = None

        # get_session may already have reported the result through the feed
        if self.status == AuthStatus.LOADING or self.session != session:
            self._apply(session)
        return session

    async def sign_in(self, credentials: Credentials) -> Session:
        return await self.auth.sign_in_with_password(credentials)

    async def sign_up(self, credentials: Credentials) -> Tuple[AuthUser, Optional[Session]]:
        return await self.auth.sign_up(credentials)

    async def sign_out(self):
        await self.auth.sign_out()

    async def refresh_if_needed(self) -> Optional[Session]:
        """Renew a token close to expiry; an unrenewable one signs the user out"""
        if self.session is None:
            return None
        try:
            return await self.auth.get_session()
        except AuthError as e:
            logger.warning(f"Token refresh failed: {e}")
            if self.status == AuthStatus.AUTHENTICATED:
                self._apply(None)
            return None
