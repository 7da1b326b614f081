"""
Reconciler module for Sakura DNS Webhook.

This module is responsible for coordinating the translator, the zone merger and the
zone store to serve the external-dns list and apply operations.
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from sakura_dns_webhook.controller.merger import ZoneMerger
from sakura_dns_webhook.controller.translator import Translator
from sakura_dns_webhook.models.errors import RemoteError
from sakura_dns_webhook.models.models import (
    DEFAULT_TXT_PREFIX,
    ChangeSet,
    Changes,
    Endpoint,
)
from sakura_dns_webhook.provider.base import ZoneStore


class Reconciler:
    """
    Reconciler that serves external-dns requests for a single zone.
    """

    def __init__(
        self,
        store: ZoneStore,
        zone_id: str,
        zone_name: str,
        txt_prefix: str = DEFAULT_TXT_PREFIX,
        registry_txt: bool = False,
        txt_owner_id: str = "default",
    ):
        """
        Initialize a Reconciler.

        Args:
            store: Zone store holding the zone's records
            zone_id: Identifier of the zone in the store
            zone_name: Name of the zone, e.g. example.com
            txt_prefix: Name prefix of the TXT registry records
            registry_txt: Whether external-dns runs with the TXT registry
            txt_owner_id: Owner ID used by the TXT registry
        """
        self.store = store
        self.zone_id = zone_id
        self.zone_name = zone_name
        self.registry_txt = registry_txt
        self.txt_owner_id = txt_owner_id
        self.translator = Translator(zone_name, txt_prefix=txt_prefix)
        self.merger = ZoneMerger()
        self.logger = logging.getLogger("sakura-dns-webhook.reconciler")

    @classmethod
    async def create(cls, store: ZoneStore, config) -> "Reconciler":
        """
        Create a Reconciler for the zone named in the configuration.

        Args:
            store: Zone store
            config: Application configuration

        Returns:
            Reconciler: Reconciler bound to the resolved zone

        Raises:
            NotFoundError: If the zone does not exist in the store
        """
        zone_id = await store.find_zone(config.zone_name)
        return cls(
            store,
            zone_id,
            config.zone_name,
            txt_prefix=config.txt_prefix,
            registry_txt=config.registry_txt,
            txt_owner_id=config.txt_owner_id,
        )

    async def records(self, timeout: Optional[float] = None) -> List[Endpoint]:
        """
        Returns the zone's current records as endpoints.

        Args:
            timeout: Seconds allowed for reading the zone

        Returns:
            List[Endpoint]: Endpoints, empty if the zone has no records
        """
        self.logger.debug(f"Listing records for zone '{self.zone_name}' (ID: {self.zone_id})")
        try:
            snapshot = await asyncio.wait_for(self.store.read_zone(self.zone_id), timeout)
        except asyncio.TimeoutError as e:
            raise RemoteError(f"Timed out reading zone {self.zone_id}") from e

        endpoints = self.translator.to_endpoints(snapshot.records)
        self.logger.debug(f"Found {len(endpoints)} endpoints in zone '{self.zone_name}'")
        return endpoints

    async def apply_changes(self, changes: Changes, timeout: Optional[float] = None) -> None:
        """
        Applies the requested changes to the zone.

        Updates are applied as a delete of the old endpoint plus a create of
        the new one.

        Args:
            changes: Changes requested by external-dns
            timeout: Seconds allowed before the zone write starts
        """
        to_create = self.translator.to_records(changes.create)
        to_delete = self.translator.to_records(changes.delete)

        # Surface updates as delete+create
        to_delete.extend(self.translator.to_records(changes.update_old))
        to_create.extend(self.translator.to_records(changes.update_new))

        self.logger.info(
            f"create count: {len(to_create)}, delete count: {len(to_delete)} "
            f"(updateOld={len(changes.update_old)}, updateNew={len(changes.update_new)})"
        )

        change_set = ChangeSet(create=to_create, delete=to_delete)
        if change_set.is_empty():
            self.logger.debug("No changes to apply")
            return

        await self.merger.apply(self.store, self.zone_id, change_set, timeout=timeout)

    def adjust_endpoints(self, endpoints: Iterable[Optional[Endpoint]]) -> List[Endpoint]:
        """
        Returns the desired endpoints external-dns should plan with.

        Endpoints are passed through unchanged.

        Args:
            endpoints: Desired endpoints

        Returns:
            List[Endpoint]: Adjusted endpoints
        """
        adjusted = [endpoint for endpoint in endpoints if endpoint is not None]
        self.logger.debug(f"Adjusted {len(adjusted)} desired endpoints")
        return adjusted
