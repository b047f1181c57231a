"""
PredictionService with an injected query runner
"""
import asyncio
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from agri_app.errors import FetchError
from agri_app.services.prediction_service import PredictionService, sort_and_cap

T0 = datetime(2024, 3, 1, 12, 0)


def row(id, minutes, crop="Wheat", yld=12.5, confidence=0.9):
    return {
        "id": id,
        "crop_type": crop,
        "yield": yld,
        "confidence": confidence,
        "created_at": T0 + timedelta(minutes=minutes),
    }


class FakeQuery:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.calls = []

    async def __call__(self, sql, params=None):
        self.calls.append((sql, params))
        if self.error is not None:
            raise self.error
        return self.rows


def test_fetch_recent_orders_newest_first_and_caps():
    async def scenario():
        query = FakeQuery([row(1, 0), row(2, 10), row(3, 5)])
        service = PredictionService(query=query)

        records = await service.fetch_recent(2)

        assert [r.id for r in records] == [2, 3]
        sql, params = query.calls[0]
        assert "ORDER BY created_at DESC" in sql
        assert "FROM public.predictions" in sql
        assert params == (2,)

    asyncio.run(scenario())


def test_fetch_recent_normalizes_rows():
    async def scenario():
        uid = UUID("12345678-1234-5678-1234-567812345678")
        service = PredictionService(query=FakeQuery([row(uid, 0)]))

        (record,) = await service.fetch_recent()

        assert record.id == str(uid)
        assert record.yield_ == 12.5
        assert record.created_at.tzinfo is timezone.utc

    asyncio.run(scenario())


def test_fetch_recent_zero_and_bounds():
    async def scenario():
        query = FakeQuery([row(1, 0)])
        service = PredictionService(query=query)

        assert await service.fetch_recent(0) == []
        assert query.calls == []
        with pytest.raises(ValueError):
            await service.fetch_recent(-1)

    asyncio.run(scenario())


def test_fetch_recent_transport_error_is_fetch_error():
    async def scenario():
        error = TimeoutError("query timed out")
        service = PredictionService(query=FakeQuery(error=error))
        with pytest.raises(FetchError) as exc:
            await service.fetch_recent()
        assert exc.value.cause is error

    asyncio.run(scenario())


def test_fetch_recent_malformed_row_is_fetch_error():
    async def scenario():
        bad = row(1, 0)
        bad["confidence"] = 1.7
        service = PredictionService(query=FakeQuery([bad]))
        with pytest.raises(FetchError):
            await service.fetch_recent()

    asyncio.run(scenario())


def test_connection_probe():
    async def scenario():
        assert await PredictionService(query=FakeQuery([row(1, 0)])).test_connection() is True
        assert await PredictionService(query=FakeQuery(error=OSError("refused"))).test_connection() is False

    asyncio.run(scenario())


def test_sort_and_cap_negative_limit():
    assert sort_and_cap([], -3) == []
