"""
Dashboard Controller
Owns DashboardViewState for one dashboard page and is the only place where
change-feed events turn into state changes.

- Every change event triggers a full resync (no incremental merge)
- Responses are applied only if newer than the last applied request
- After on_unmount() nothing is applied, even from fetches still in flight
"""
import asyncio
import inspect
from typing import Awaitable, Callable, List, Optional, Protocol, Set, Union

from agri_app.errors import FetchError, SubscriptionError
from agri_app.models.dashboard import DashboardViewState, Tab
from agri_app.models.models import ChangeEvent, PredictionRecord
from agri_app.services.prediction_service import MAX_LIMIT, PREDICTIONS_TABLE, sort_and_cap
from agri_app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 50

UpdateCallback = Callable[[DashboardViewState], Union[None, Awaitable[None]]]


class Subscription(Protocol):
    async def close(self) -> None: ...


class RecordSource(Protocol):
    async def fetch_recent(self, limit: int = DEFAULT_LIMIT) -> List[PredictionRecord]: ...

    async def watch_changes(self, on_event, table: Optional[str] = None) -> Subscription: ...


class DashboardController:

    def __init__(
        self,
        records: RecordSource,
        on_update: Optional[UpdateCallback] = None,
        limit: int = DEFAULT_LIMIT,
        table: str = PREDICTIONS_TABLE,
    ):
        if not 0 <= limit <= MAX_LIMIT:
            raise ValueError(f"limit must be between 0 and {MAX_LIMIT}")
        self.records = records
        self.on_update = on_update
        self.limit = limit
        self.table = table
        self.state = DashboardViewState()

        self._subscription: Optional[Subscription] = None
        self._alive = True
        self._issued_seq = 0
        self._applied_seq = 0
        self._pending: Set[asyncio.Task] = set()

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def on_mount(self):
        """Initial load plus a standing change subscription"""
        if not self._alive:
            raise RuntimeError("DashboardController was unmounted")

        self.state.loading = True
        await self._publish()

        await self._close_subscription()
        try:
            subscription = await self.records.watch_changes(self._schedule_resync, table=self.table)
        except SubscriptionError as e:
            logger.error(f"Realtime updates unavailable: {e}")
            return await self._resync()

        if not self._alive:
            # unmounted while the subscription was opening
            await subscription.close()
            return
        self._subscription = subscription
        await self._resync()

    async def on_unmount(self):
        self._alive = False
        await self._close_subscription()
        logger.info(f"Dashboard controller unmounted ({len(self._pending)} fetches still in flight)")

    async def _close_subscription(self):
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            try:
                await subscription.close()
            except Exception as e:
                logger.error(f"Closing change subscription failed: {e}")

    # =========================================================================
    # CHANGE EVENTS
    # =========================================================================

    def _schedule_resync(self, event: ChangeEvent):
        """Subscription callback; the listener keeps reading while we fetch"""
        task = asyncio.create_task(self.on_change_event(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def on_change_event(self, event: Optional[ChangeEvent] = None) -> bool:
        # payload ignored on purpose; always resync the whole window
        if event is not None:
            logger.debug(f"Change on {event.table}: {event.type}")
        return await self._resync()

    async def refresh(self) -> bool:
        """Manual refresh from the UI"""
        if not self._alive:
            return False
        self.state.loading = True
        await self._publish()
        return await self._resync()

    async def _resync(self) -> bool:
        """Fetch the newest window; True if the result was applied"""
        if not self._alive:
            return False

        self._issued_seq += 1
        seq = self._issued_seq

        try:
            records = await self.records.fetch_recent(self.limit)
        except FetchError as e:
            logger.error(f"Error fetching predictions (request #{seq}): {e}")
            if self._alive and seq == self._issued_seq and self.state.loading:
                self.state.loading = False
                await self._publish()
            return False

        if not self._alive:
            logger.debug(f"Discarding request #{seq}: controller unmounted")
            return False
        if seq <= self._applied_seq:
            logger.debug(f"Discarding stale request #{seq} (applied #{self._applied_seq})")
            return False

        self._applied_seq = seq
        self.state.records = tuple(sort_and_cap(records, self.limit))
        if seq == self._issued_seq:
            self.state.loading = False
        await self._publish()
        logger.debug(f"Applied request #{seq}: {len(self.state.records)} predictions")
        return True

    # =========================================================================
    # PURE TRANSITIONS
    # =========================================================================

    def select_tab(self, tab: Union[Tab, str]) -> DashboardViewState:
        selected = Tab(tab)
        if self._alive:
            self.state.selected_tab = selected
        return self.state.snapshot()

    def clear_notifications(self) -> DashboardViewState:
        if self._alive:
            self.state.notifications = 0
        return self.state.snapshot()

    async def _publish(self):
        if self.on_update is None or not self._alive:
            return
        try:
            result = self.on_update(self.state.snapshot())
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Dashboard view update failed: {e}", exc_info=True)
