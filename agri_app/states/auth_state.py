"""
Auth State - sign-in, sign-up, sign-out and the protected-page gate
- Talks to the per-client SessionStore (agri_app.states.registry)
- Status mirrors the store after every operation, so a sign-out hides the
  dashboard in the same state update
"""
import reflex as rx
from typing import Any, Dict
from pydantic import ValidationError
from reflex.utils import console

from agri_app.errors import AuthError
from agri_app.models.models import AuthStatus, Credentials
from agri_app.states.base import BaseState
from agri_app.states.registry import get_session_store, release_session_store


class AuthState(BaseState):
    """Current user for this browser tab"""

    status: str = AuthStatus.UNKNOWN.value
    user_email: str = ""
    user_id: str = ""

    # Form feedback
    submitting: bool = False
    info_message: str = ""

    # Survives reloads; lets restore() renew the session
    persisted_refresh_token: str = rx.LocalStorage("", name="agri_refresh_token")

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================

    @rx.var
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED.value

    @rx.var
    def is_resolving(self) -> bool:
        return self.status in (AuthStatus.UNKNOWN.value, AuthStatus.LOADING.value)

    @rx.var
    def display_name(self) -> str:
        return self.user_email.split("@")[0] if self.user_email else ""

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _store(self):
        """Session store of this tab; None (logged) when auth is not configured"""
        try:
            return get_session_store(self.router.session.client_token)
        except AuthError as e:
            console.error(f"Session store unavailable: {e}")
            self.status = AuthStatus.ANONYMOUS.value
            self.user_email = ""
            self.user_id = ""
            return None

    def _release_unless_signed_in(self, store):
        if not store.can_render_protected:
            release_session_store(self.router.session.client_token, store)

    def _sync(self, store):
        """Copy the store's state into vars"""
        self.status = store.status.value
        session = store.session
        self.user_email = (session.user.email or "") if session else ""
        self.user_id = session.user.id if session else ""
        self.persisted_refresh_token = (session.refresh_token or "") if session else ""

    def _credentials(self, form_data: Dict[str, Any]) -> Credentials:
        try:
            return Credentials(email=form_data.get("email", ""), password=form_data.get("password", ""))
        except ValidationError as e:
            raise AuthError(e.errors()[0]["msg"].removeprefix("Value error, ")) from e

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    @rx.event
    async def restore(self):
        """on_load for protected pages: resolve the session, else go to /login"""
        store = self._store()
        if store is None:
            return rx.redirect("/login")
        if store.is_resolving:
            self.status = AuthStatus.LOADING.value
            await store.restore_session(self.persisted_refresh_token or None)
        else:
            await store.refresh_if_needed()
        self._sync(store)

        if not store.can_render_protected:
            return rx.redirect("/login")

    @rx.event
    async def redirect_if_signed_in(self):
        """on_load for /login and /register"""
        store = self._store()
        if store is None:
            return
        if store.is_resolving:
            await store.restore_session(self.persisted_refresh_token or None)
        self._sync(store)
        if store.can_render_protected:
            return rx.redirect("/")

    @rx.event
    async def sign_in(self, form_data: Dict[str, Any]):
        self.error_message = ""
        self.info_message = ""
        store = self._store()
        if store is None:
            self.error_message = "Sign-in is not available right now"
            return

        self.submitting = True
        yield

        try:
            await store.sign_in(self._credentials(form_data))
        except AuthError as e:
            console.warn(f"Sign-in failed: {e}")
            self.error_message = str(e)
            self._release_unless_signed_in(store)
            return
        finally:
            self.submitting = False
            self._sync(store)

        yield rx.redirect("/")

    @rx.event
    async def sign_up(self, form_data: Dict[str, Any]):
        self.error_message = ""
        self.info_message = ""
        if form_data.get("password") != form_data.get("confirm_password", form_data.get("password")):
            self.error_message = "Passwords do not match"
            return
        store = self._store()
        if store is None:
            self.error_message = "Registration is not available right now"
            return

        self.submitting = True
        yield

        try:
            user, session = await store.sign_up(self._credentials(form_data))
        except AuthError as e:
            console.warn(f"Sign-up failed: {e}")
            self.error_message = str(e)
            self._release_unless_signed_in(store)
            return
        finally:
            self.submitting = False
            self._sync(store)

        if session is None:
            # pending e-mail confirmation
            self._release_unless_signed_in(store)
            self.info_message = f"Check {user.email or 'your inbox'} to confirm your account, then sign in."
            return
        yield rx.redirect("/")

    @rx.event
    async def sign_out(self):
        store = self._store()
        if store is None:
            return rx.redirect("/login")
        try:
            await store.sign_out()
        except AuthError as e:
            # local session is already gone; remote revoke failure is only logged
            console.error(f"Sign-out request failed: {e}")
        self._sync(store)
        return rx.redirect("/login")
