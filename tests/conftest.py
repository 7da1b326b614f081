"""Shared test fixtures for Sakura DNS Webhook tests."""

import asyncio
import threading
from typing import List, Optional

import pytest

from sakura_dns_webhook.controller.reconciler import Reconciler
from sakura_dns_webhook.controller.translator import Translator
from sakura_dns_webhook.models.errors import ConflictError, NotFoundError
from sakura_dns_webhook.models.models import Record, ZoneSnapshot
from sakura_dns_webhook.provider.base import ZoneStore


# ============================================================================
# Fake zone store
# ============================================================================


class FakeZoneStore(ZoneStore):
    """In-memory zone store recording every read and write."""

    def __init__(self, zone_name: str = "example.com", records: Optional[List[Record]] = None):
        self.zone_name = zone_name
        self.zone_id = "113000000001"
        self.records: List[Record] = list(records or [])
        self.token = 1
        self.reads = 0
        self.writes: List[List[Record]] = []
        self.read_error: Optional[Exception] = None
        self.write_error: Optional[Exception] = None
        self.read_delay = 0.0
        self.write_delay = 0.0

    async def find_zone(self, zone_name: str) -> str:
        if zone_name != self.zone_name:
            raise NotFoundError(f"Zone '{zone_name}' not found")
        return self.zone_id

    async def read_zone(self, zone_id: str) -> ZoneSnapshot:
        self.reads += 1
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if self.read_error:
            raise self.read_error
        return ZoneSnapshot(
            zone_id=zone_id,
            zone_name=self.zone_name,
            records=list(self.records),
            concurrency_token=str(self.token),
        )

    async def write_zone(self, zone_id, records, concurrency_token) -> None:
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.write_error:
            raise self.write_error
        if concurrency_token != str(self.token):
            raise ConflictError("settings hash mismatch")
        self.writes.append(list(records))
        self.records = list(records)
        self.token += 1


# ============================================================================
# Core fixtures
# ============================================================================


@pytest.fixture
def translator() -> Translator:
    """Provide a translator for example.com."""
    return Translator("example.com")


@pytest.fixture
def fake_store() -> FakeZoneStore:
    """Provide an empty fake zone store for example.com."""
    return FakeZoneStore()


@pytest.fixture
def reconciler(fake_store: FakeZoneStore) -> Reconciler:
    """Provide a reconciler bound to the fake zone store."""
    return Reconciler(fake_store, fake_store.zone_id, "example.com")


@pytest.fixture
def sample_records() -> List[Record]:
    """Provide sample zone records."""
    return [
        Record(type="A", name="www", targets=["192.0.2.10"], ttl=300),
        Record(type="A", name="api", targets=["192.0.2.20"], ttl=3600),
        Record(
            type="TXT",
            name="_external-dns.a-api",
            targets=["heritage=external-dns,external-dns/owner=default"],
            ttl=3600,
        ),
        Record(type="ALIAS", name="apex", targets=["lb.example.net."], ttl=600),
    ]


# ============================================================================
# Event loop running in a background thread
# ============================================================================


@pytest.fixture
def background_loop():
    """Provide an event loop running in its own thread."""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield loop
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.close()
