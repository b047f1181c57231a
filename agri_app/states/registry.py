"""
Per-client objects behind the Reflex states

Reflex state vars must stay serialisable, so the session store and dashboard
controller of each browser tab live here, keyed by the client token.
"""
import asyncio
import itertools
from typing import Callable, Dict, Optional

import httpx

from agri_app.controllers.dashboard_controller import DashboardController
from agri_app.controllers.session_store import SessionStore
from agri_app.errors import AuthError
from agri_app.services.auth_service import AuthService
from agri_app.services.prediction_service import PredictionService
from agri_app.utils.logger import get_logger
from agri_app.utils.secure_config import get_settings

logger = get_logger(__name__)

_SESSION_STORES: Dict[str, SessionStore] = {}
_CONTROLLERS: Dict[str, DashboardController] = {}
_SESSION_UNSUBSCRIBES: Dict[str, Callable[[], None]] = {}
# generation of the open dashboard mount per client
_MOUNT_GENERATIONS: Dict[str, int] = {}
_generations = itertools.count(1)

_http_client: Optional[httpx.AsyncClient] = None
_prediction_service: Optional[PredictionService] = None


def _shared_http_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=10.0)
    return _http_client


def get_prediction_service() -> PredictionService:
    global _prediction_service
    if _prediction_service is None:
        _prediction_service = PredictionService()
    return _prediction_service


def get_session_store(client_token: str) -> SessionStore:
    """
    Mounted session store for one client, created on first access

    A store that resolves to anonymous is released again, so only signed-in
    clients keep an entry.

    Raises:
        AuthError: SUPABASE_URL / SUPABASE_ANON_KEY are not configured
    """
    store = _SESSION_STORES.get(client_token)
    if store is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.anon_key:
            raise AuthError("Identity service is not configured", code="not_configured")
        auth = AuthService(settings.supabase_url, settings.anon_key, client=_shared_http_client())
        store = SessionStore(auth)
        store.mount()
        store.subscribe(_release_when_anonymous(client_token, store))
        _SESSION_STORES[client_token] = store
    return store


def _release_when_anonymous(client_token: str, store: SessionStore):
    def on_session(session):
        if session is None:
            release_session_store(client_token, store)

    return on_session


def release_session_store(client_token: str, store: Optional[SessionStore] = None):
    """Drop a client's store and its auth feed subscription"""
    current = _SESSION_STORES.get(client_token)
    if store is None:
        store = current
    if store is None:
        return
    if current is store:
        del _SESSION_STORES[client_token]
    store.unmount()
    logger.debug(f"Released session store for {client_token[:8]} ({len(_SESSION_STORES)} left)")


def get_controller(client_token: str) -> Optional[DashboardController]:
    return _CONTROLLERS.get(client_token)


def begin_mount(client_token: str) -> int:
    """Open a dashboard mount; the returned generation goes to attach_controller"""
    generation = next(_generations)
    _MOUNT_GENERATIONS[client_token] = generation
    return generation


def is_current_mount(client_token: str, generation: int) -> bool:
    return _MOUNT_GENERATIONS.get(client_token) == generation


async def end_mount(client_token: str):
    """Dashboard unmounted: invalidate pending mounts and tear down the controller"""
    _MOUNT_GENERATIONS.pop(client_token, None)
    await detach_controller(client_token)


async def attach_controller(
    client_token: str,
    controller: DashboardController,
    generation: Optional[int] = None,
) -> bool:
    """
    Register a dashboard controller, tearing down the previous one first

    Returns False, with the controller unmounted, when the mount it belongs
    to has already ended.
    """
    if generation is not None and not is_current_mount(client_token, generation):
        await controller.on_unmount()
        return False
    await detach_controller(client_token)
    _CONTROLLERS[client_token] = controller

    store = _SESSION_STORES.get(client_token)
    if store is not None:
        def on_session(session):
            if session is None and _CONTROLLERS.get(client_token) is controller:
                asyncio.create_task(detach_controller(client_token))

        _SESSION_UNSUBSCRIBES[client_token] = store.subscribe(on_session)
    return True


async def detach_controller(client_token: str):
    unsubscribe = _SESSION_UNSUBSCRIBES.pop(client_token, None)
    if unsubscribe is not None:
        unsubscribe()
    controller = _CONTROLLERS.pop(client_token, None)
    if controller is not None:
        await controller.on_unmount()


async def shutdown():
    """Release every client object (app shutdown)"""
    for token in list(_CONTROLLERS):
        await detach_controller(token)
    for store in list(_SESSION_STORES.values()):
        store.unmount()
    _SESSION_STORES.clear()
    _MOUNT_GENERATIONS.clear()

    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
