"""
Prediction Service
- Reads the `predictions` table (newest first, capped)
- Opens change subscriptions on the table's NOTIFY channel
"""
from typing import Awaitable, Callable, List, Optional, Sequence

from pydantic import ValidationError

from agri_app import db
from agri_app.errors import FetchError
from agri_app.models.models import PredictionRecord
from agri_app.utils.db_events import ALL_EVENTS, ChangeCallback, ChangeSubscription
from agri_app.utils.logger import get_logger, log_function
from agri_app.utils.secure_config import MAX_PREDICTION_LIMIT

logger = get_logger(__name__)

PREDICTIONS_TABLE = "predictions"
MAX_LIMIT = MAX_PREDICTION_LIMIT

QueryRunner = Callable[..., Awaitable[List[dict]]]


def sort_and_cap(records: Sequence[PredictionRecord], limit: int) -> List[PredictionRecord]:
    """created_at descending, at most `limit` records"""
    ordered = sorted(records, key=lambda r: r.created_at, reverse=True)
    return ordered[:max(limit, 0)]


class PredictionService:
    """Record access for the predictions table"""

    def __init__(
        self,
        query: Optional[QueryRunner] = None,
        connect=None,
        table: str = PREDICTIONS_TABLE,
    ):
        """
        Args:
            query: coroutine (sql, params) -> dict rows; defaults to the pooled db.q
            connect: coroutine returning a LISTEN connection; defaults to db.connect_listener
            table: logical table name
        """
        self._query = query or db.q
        self._connect = connect or db.connect_listener
        self.table = table

    @log_function
    async def fetch_recent(self, limit: int = 50) -> List[PredictionRecord]:
        """
        Newest predictions first

        Raises:
            FetchError: on transport errors or rows that fail validation
        """
        if limit < 0 or limit > MAX_LIMIT:
            raise ValueError(f"limit must be between 0 and {MAX_LIMIT}")
        if limit == 0:
            return []

        query = (
            "SELECT id, crop_type, yield, confidence, created_at "
            f"FROM public.{self.table} "
            "ORDER BY created_at DESC "
            "LIMIT %s"
        )
        try:
            rows = await self._query(query, (limit,))
        except Exception as e:
            raise FetchError(f"Failed to fetch {self.table}: {e}", cause=e) from e

        try:
            records = [PredictionRecord.model_validate(row) for row in rows or []]
        except ValidationError as e:
            raise FetchError(f"Malformed {self.table} row: {e.errors()[0]['msg']}", cause=e) from e

        logger.debug(f"Fetched {len(records)} {self.table} rows")
        return sort_and_cap(records, limit)

    async def watch_changes(
        self,
        on_event: ChangeCallback,
        table: Optional[str] = None,
        event: str = ALL_EVENTS,
    ) -> ChangeSubscription:
        """
        Start a standing subscription to row changes

        Raises:
            SubscriptionError: the LISTEN connection could not be opened
        """
        subscription = ChangeSubscription(table or self.table, on_event, connect=self._connect, event=event)
        return await subscription.start()

    async def test_connection(self) -> bool:
        """Cheap probe used at app load"""
        try:
            await self._query(f"SELECT id FROM public.{self.table} LIMIT %s", (1,))
            return True
        except Exception as e:
            logger.error(f"Backend connection test failed: {e}")
            return False
