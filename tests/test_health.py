import pytest

from warehouse_flow.exceptions import EntityStoreError
from warehouse_flow.persistence import InMemoryEntityStore
from warehouse_flow.services import StoreHealthIndicator


class _UnreachableStore(InMemoryEntityStore):
    async def ping(self) -> None:
        raise EntityStoreError("ping", "connection refused")


@pytest.mark.asyncio
async def test_indicator_reports_up_for_reachable_store():
    status = await StoreHealthIndicator(InMemoryEntityStore()).check("database")
    assert status.up
    assert status.status == "up"
    assert status.message is None


@pytest.mark.asyncio
async def test_indicator_reports_down_with_message():
    status = await StoreHealthIndicator(_UnreachableStore()).check("database")
    assert not status.up
    assert status.key == "database"
    assert status.message == "connection refused"
