"""
Merge module for Sakura DNS Webhook.

This module is responsible for computing the new record list of a zone from its
current records and a set of records to create and delete.
"""

import asyncio
import logging
from time import monotonic
from typing import List, Optional

from sakura_dns_webhook.models.errors import RemoteError
from sakura_dns_webhook.models.models import ChangeSet, Record


class ZoneMerger:
    """
    ZoneMerger rewrites a zone's record list without disturbing unrelated records.
    """

    def __init__(self):
        self.logger = logging.getLogger("sakura-dns-webhook.merger")

    def merge(self, current: List[Record], change_set: ChangeSet) -> List[Record]:
        """
        Calculate the record list that results from applying a change set.

        A current record is dropped when some delete entry has the same type,
        name and first target. Creates are appended in order without
        de-duplication.

        Args:
            current: Current records of the zone
            change_set: Records to create and delete

        Returns:
            List[Record]: Complete new record list
        """
        delete_keys = [record.key() for record in change_set.delete]

        merged: List[Record] = []
        for record in current:
            if record.key() in delete_keys:
                self.logger.info(
                    f"Deleting record: {record.type} {record.name} -> {record.targets}"
                )
                continue
            merged.append(record)

        for record in change_set.create:
            self.logger.info(
                f"Creating record: {record.type} {record.name} -> {record.targets} (TTL={record.ttl})"
            )
            merged.append(record)

        return merged

    async def apply(
        self,
        store,
        zone_id: str,
        change_set: ChangeSet,
        timeout: Optional[float] = None,
    ) -> List[Record]:
        """
        Reads the zone, merges the change set and writes the result back.

        The zone is always read fresh. A failed read leaves the zone untouched.
        The timeout is checked before and after the read; once started the
        write is not interrupted by cancellation.

        Args:
            store: Zone store
            zone_id: Zone identifier
            change_set: Records to create and delete
            timeout: Seconds allowed before the write starts

        Returns:
            List[Record]: The record list that was written

        Raises:
            RemoteError: If the zone store fails or the timeout expires
        """
        self.logger.info(
            f"Applying changes: create {len(change_set.create)}, delete {len(change_set.delete)} records"
        )
        deadline = monotonic() + timeout if timeout is not None else None

        try:
            snapshot = await asyncio.wait_for(store.read_zone(zone_id), timeout)
        except asyncio.TimeoutError as e:
            raise RemoteError(f"Timed out reading zone {zone_id}") from e
        self.logger.debug(
            f"Read {len(snapshot.records)} records from zone {snapshot.zone_name} (ID: {zone_id})"
        )

        merged = self.merge(snapshot.records, change_set)

        if deadline is not None and monotonic() >= deadline:
            raise RemoteError(
                f"Timed out before writing zone {zone_id}, no changes were written"
            )

        await asyncio.shield(
            store.write_zone(zone_id, merged, snapshot.concurrency_token)
        )
        self.logger.info(
            f"DNS changes applied successfully ({len(merged)} records in zone)"
        )
        return merged
