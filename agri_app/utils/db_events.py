"""
Table change feed over PostgreSQL LISTEN/NOTIFY
The predictions trigger (sql/predictions_changes.sql) publishes one JSON
payload per row change on the `<table>_changes` channel
"""

import asyncio
import inspect
import json
from typing import Awaitable, Callable, Optional, Union

import psycopg
from psycopg import sql
from pydantic import ValidationError

from agri_app.errors import SubscriptionError
from agri_app.models.models import ChangeEvent
from agri_app.utils.logger import get_logger

logger = get_logger(__name__)

ALL_EVENTS = "*"

ChangeCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]
ConnectFactory = Callable[[], Awaitable[psycopg.AsyncConnection]]


def channel_for(table: str) -> str:
    return f"{table}_changes"


def decode_payload(payload: str, table: str) -> Optional[ChangeEvent]:
    """Parse a NOTIFY payload; None when it is not a change event"""
    try:
        data = json.loads(payload) if payload else {}
        data.setdefault("table", table)
        return ChangeEvent.model_validate(data)
    except (json.JSONDecodeError, AttributeError, ValidationError) as e:
        logger.warning(f"Ignoring malformed change payload on {table}: {e}")
        return None


class ChangeSubscription:
    """Standing LISTEN on one table's change channel

    start() opens a dedicated connection and a reader task; close() releases
    both exactly once. A dropped connection is logged and not retried.
    """

    def __init__(
        self,
        table: str,
        on_event: ChangeCallback,
        connect: ConnectFactory,
        event: str = ALL_EVENTS,
        poll_timeout: float = 5.0,
    ):
        self.table = table
        self.channel = channel_for(table)
        self.event = event.upper()
        self.on_event = on_event
        self.poll_timeout = poll_timeout
        self._connect = connect
        self._connection: Optional[psycopg.AsyncConnection] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self.error: Optional[SubscriptionError] = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active(self) -> bool:
        return not self._closed and self._task is not None and not self._task.done()

    async def start(self) -> "ChangeSubscription":
        try:
            self._connection = await self._connect()
            await self._connection.execute(sql.SQL("LISTEN {}").format(sql.Identifier(self.channel)))
        except Exception as e:
            self.error = SubscriptionError(f"Could not listen on {self.channel}: {e}", cause=e)
            logger.error(str(self.error))
            await self._release_connection()
            self._closed = True
            raise self.error from e

        self._task = asyncio.create_task(self._listen_loop(), name=f"listen:{self.channel}")
        logger.info(f"📡 Listening on channel: {self.channel} (event={self.event})")
        return self

    async def _listen_loop(self):
        while not self._closed:
            try:
                async for notify in self._connection.notifies(timeout=self.poll_timeout):
                    await self._dispatch(notify.payload)
                    if self._closed:
                        break
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._closed:
                    break
                self.error = SubscriptionError(f"Change feed {self.channel} dropped: {e}", cause=e)
                logger.error(str(self.error))
                break

    async def _dispatch(self, payload: str):
        event = decode_payload(payload, self.table)
        if event is None:
            return
        if self.event != ALL_EVENTS and event.type != self.event:
            return

        logger.debug(f"📨 {self.channel}: {event.type}")
        try:
            result = self.on_event(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Change callback failed on {self.channel}: {e}", exc_info=True)

    async def close(self):
        if self._closed and self._task is None and self._connection is None:
            return
        self._closed = True

        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._release_connection()
        logger.info(f"🛑 Stopped listening on channel: {self.channel}")

    async def _release_connection(self):
        conn, self._connection = self._connection, None
        if conn is None:
            return
        try:
            if not conn.closed:
                await conn.execute(sql.SQL("UNLISTEN {}").format(sql.Identifier(self.channel)))
        except (psycopg.Error, OSError) as e:
            logger.debug(f"UNLISTEN {self.channel} failed: {e}")
        finally:
            await conn.close()
