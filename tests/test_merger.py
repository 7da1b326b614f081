"""Tests for the zone merger."""

import asyncio

import pytest

from sakura_dns_webhook.controller.merger import ZoneMerger
from sakura_dns_webhook.models.errors import ConflictError, RemoteError
from sakura_dns_webhook.models.models import ChangeSet, Record


@pytest.fixture
def merger() -> ZoneMerger:
    return ZoneMerger()


class TestMerge:
    """Tests for ZoneMerger.merge()."""

    def test_preserves_unrelated_records(self, merger):
        """Test deleted records go, others stay in order and creates are appended."""
        keep = Record(type="A", name="keep", targets=["192.0.2.1"])
        del_a = Record(type="A", name="old", targets=["192.0.2.2"])
        del_txt = Record(type="TXT", name="_external-dns.a-old", targets=["heritage=external-dns"])
        new_a = Record(type="A", name="new", targets=["192.0.2.3"])

        merged = merger.merge(
            [keep, del_a, del_txt],
            ChangeSet(create=[new_a], delete=[del_a, del_txt]),
        )

        assert merged == [keep, new_a]

    def test_delete_with_other_target_does_not_match(self, merger):
        """Test a delete naming a different target leaves the record alone."""
        stored = Record(type="A", name="www", targets=["192.0.2.1"])

        merged = merger.merge(
            [stored],
            ChangeSet(delete=[Record(type="A", name="www", targets=["192.0.2.99"])]),
        )

        assert merged == [stored]

    def test_delete_matches_on_type(self, merger):
        """Test a delete of another record type does not match."""
        stored = Record(type="CNAME", name="www", targets=["example.com."])

        merged = merger.merge(
            [stored],
            ChangeSet(delete=[Record(type="ALIAS", name="www", targets=["example.com."])]),
        )

        assert merged == [stored]

    def test_delete_ignores_ttl(self, merger):
        """Test TTL is not part of the match."""
        stored = Record(type="A", name="www", targets=["192.0.2.1"], ttl=120)

        merged = merger.merge(
            [stored],
            ChangeSet(delete=[Record(type="A", name="www", targets=["192.0.2.1"], ttl=3600)]),
        )

        assert merged == []

    def test_multi_value_delete_uses_first_target(self, merger):
        """Test only the value matching the first delete target is removed."""
        first = Record(type="TXT", name="txt", targets=["one"])
        second = Record(type="TXT", name="txt", targets=["two"])

        merged = merger.merge(
            [first, second],
            ChangeSet(delete=[Record(type="TXT", name="txt", targets=["one", "two"])]),
        )

        assert merged == [second]

    def test_duplicate_create_is_not_rejected(self, merger):
        """Test creates are appended even when identical to a kept record."""
        stored = Record(type="A", name="www", targets=["192.0.2.1"])

        merged = merger.merge([stored], ChangeSet(create=[stored]))

        assert merged == [stored, stored]

    def test_preexisting_duplicates_pass_through(self, merger):
        """Test duplicates already in the zone are kept."""
        stored = Record(type="A", name="www", targets=["192.0.2.1"])
        other = Record(type="A", name="api", targets=["192.0.2.2"])

        merged = merger.merge([stored, stored, other], ChangeSet())

        assert merged == [stored, stored, other]

    def test_creates_keep_request_order(self, merger):
        """Test creates are appended in the order given."""
        a = Record(type="A", name="a", targets=["192.0.2.1"])
        b = Record(type="A", name="b", targets=["192.0.2.2"])

        assert merger.merge([], ChangeSet(create=[b, a])) == [b, a]


class TestApply:
    """Tests for ZoneMerger.apply()."""

    @pytest.mark.asyncio
    async def test_reads_merges_and_writes(self, merger, fake_store):
        """Test the merged list is written back with the snapshot token."""
        keep = Record(type="A", name="keep", targets=["192.0.2.1"])
        gone = Record(type="A", name="gone", targets=["192.0.2.2"])
        fake_store.records = [keep, gone]
        new = Record(type="A", name="new", targets=["192.0.2.3"])

        written = await merger.apply(
            fake_store, fake_store.zone_id, ChangeSet(create=[new], delete=[gone])
        )

        assert written == [keep, new]
        assert fake_store.writes == [[keep, new]]
        assert fake_store.token == 2

    @pytest.mark.asyncio
    async def test_read_failure_aborts(self, merger, fake_store):
        """Test a failed read writes nothing."""
        fake_store.read_error = RemoteError("read failed")

        with pytest.raises(RemoteError, match="read failed"):
            await merger.apply(fake_store, fake_store.zone_id, ChangeSet())

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self, merger, fake_store):
        """Test a failed write surfaces unchanged and leaves the zone as it was."""
        stored = Record(type="A", name="www", targets=["192.0.2.1"])
        fake_store.records = [stored]
        fake_store.write_error = RemoteError("write failed")

        with pytest.raises(RemoteError, match="write failed"):
            await merger.apply(fake_store, fake_store.zone_id, ChangeSet(delete=[stored]))

        assert fake_store.records == [stored]

    @pytest.mark.asyncio
    async def test_conflict_propagates(self, fake_store):
        """Test a stale concurrency token surfaces as ConflictError."""

        class RacingStore(type(fake_store)):
            async def read_zone(self, zone_id):
                snapshot = await super().read_zone(zone_id)
                # Another writer changes the zone right after our read
                self.token += 1
                return snapshot

        store = RacingStore()

        with pytest.raises(ConflictError):
            await ZoneMerger().apply(store, store.zone_id, ChangeSet())

        assert store.writes == []

    @pytest.mark.asyncio
    async def test_read_timeout_aborts_before_write(self, merger, fake_store):
        """Test a read exceeding the timeout raises RemoteError without writing."""
        fake_store.read_delay = 0.5

        with pytest.raises(RemoteError, match="Timed out"):
            await merger.apply(fake_store, fake_store.zone_id, ChangeSet(), timeout=0.05)

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_cancel_before_write(self, merger, fake_store):
        """Test cancelling during the read leaves the zone unwritten."""
        fake_store.read_delay = 0.5

        task = asyncio.ensure_future(
            merger.apply(fake_store, fake_store.zone_id, ChangeSet())
        )
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_deadline_passed_after_read_skips_write(self, merger, fake_store, monkeypatch):
        """Test a read finishing after the deadline writes nothing."""
        clock = iter([0.0, 10.0])
        monkeypatch.setattr(
            "sakura_dns_webhook.controller.merger.monotonic", lambda: next(clock)
        )
        new = Record(type="A", name="new", targets=["192.0.2.3"])

        with pytest.raises(RemoteError, match="no changes were written"):
            await merger.apply(
                fake_store, fake_store.zone_id, ChangeSet(create=[new]), timeout=5
            )

        assert fake_store.reads == 1
        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_cancel_during_write_lets_write_finish(self, merger, fake_store):
        """Test cancelling while the write is in flight does not abort the write."""
        fake_store.write_delay = 0.2
        new = Record(type="A", name="new", targets=["192.0.2.3"])

        task = asyncio.ensure_future(
            merger.apply(fake_store, fake_store.zone_id, ChangeSet(create=[new]))
        )
        # Read is instant, so the write is in progress by now
        await asyncio.sleep(0.05)
        assert fake_store.reads == 1
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        await asyncio.sleep(0.3)
        assert fake_store.writes == [[new]]
        assert fake_store.records == [new]
