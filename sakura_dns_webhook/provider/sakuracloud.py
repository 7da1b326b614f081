"""
Sakura Cloud provider module for Sakura DNS Webhook.

This module is responsible for reading and rewriting the record list of a Sakura
Cloud DNS zone.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from sakura_dns_webhook.models.errors import ConflictError, NotFoundError, RemoteError
from sakura_dns_webhook.models.models import DEFAULT_API_URL, DEFAULT_TTL, Record, ZoneSnapshot
from sakura_dns_webhook.provider.base import ZoneStore


class SakuraCloudZoneStore(ZoneStore):
    """
    Zone store backed by the Sakura Cloud DNS appliance API.
    """

    def __init__(
        self,
        api_token: str,
        api_secret: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize a SakuraCloudZoneStore.

        Args:
            api_token: Sakura Cloud API access token
            api_secret: Sakura Cloud API access token secret
            base_url: Base URL of the Sakura Cloud API
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url
        self.logger = logging.getLogger("sakura-dns-webhook.provider.sakuracloud")
        self.client = httpx.AsyncClient(
            base_url=base_url,
            auth=(api_token, api_secret),
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def find_zone(self, zone_name: str) -> str:
        self.logger.info(f"Searching for DNS zone '{zone_name}'")
        data = await self._request("GET", "/commonserviceitem")

        items = data.get("CommonServiceItems") or []
        for item in items:
            if (item.get("Provider") or {}).get("Class") != "dns":
                continue
            name = item.get("Name") or (item.get("Status") or {}).get("Zone")
            self.logger.debug(f"Found zone: {name} (ID: {item.get('ID')})")
            if name == zone_name:
                zone_id = str(item["ID"])
                self.logger.info(f"Matched target zone '{zone_name}' with ID {zone_id}")
                return zone_id

        self.logger.error(f"Zone '{zone_name}' not found among {len(items)} items")
        raise NotFoundError(f"Zone '{zone_name}' not found")

    async def read_zone(self, zone_id: str) -> ZoneSnapshot:
        data = await self._request("GET", f"/commonserviceitem/{zone_id}")
        item = data.get("CommonServiceItem")
        if not isinstance(item, dict):
            raise RemoteError(f"Unexpected response reading zone {zone_id}")

        records = []
        for rrset in self._resource_record_sets(item):
            record = Record(
                type=rrset.get("Type", ""),
                name=rrset.get("Name", ""),
                targets=[rrset.get("RData", "")],
                ttl=rrset.get("TTL") or DEFAULT_TTL,
            )
            self.logger.debug(
                f"Found record: {record.type} {record.name} -> {record.targets} (TTL={record.ttl})"
            )
            records.append(record)

        return ZoneSnapshot(
            zone_id=zone_id,
            zone_name=item.get("Name", ""),
            records=records,
            concurrency_token=item.get("SettingsHash"),
        )

    async def write_zone(
        self, zone_id: str, records: List[Record], concurrency_token: Optional[str]
    ) -> None:
        rrsets = []
        for record in records:
            # Sakura Cloud stores one value per resource record
            for target in record.targets:
                rrsets.append(
                    {
                        "Name": record.name,
                        "Type": record.type,
                        "RData": target,
                        "TTL": record.ttl,
                    }
                )

        body: Dict[str, Any] = {
            "CommonServiceItem": {
                "Settings": {"DNS": {"ResourceRecordSets": rrsets}},
            }
        }
        if concurrency_token:
            body["CommonServiceItem"]["SettingsHash"] = concurrency_token

        self.logger.debug(f"Writing {len(rrsets)} resource records to zone {zone_id}")
        await self._request("PUT", f"/commonserviceitem/{zone_id}", json=body)

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            self.logger.error(f"Sakura Cloud API error on {method} {path}: HTTP {status}")
            if status == 409:
                raise ConflictError(
                    f"Zone was modified concurrently ({method} {path})"
                ) from e
            raise RemoteError(f"Sakura Cloud API returned HTTP {status} for {method} {path}") from e
        except httpx.HTTPError as e:
            self.logger.error(f"Sakura Cloud API request {method} {path} failed: {e}")
            raise RemoteError(f"Sakura Cloud API request failed: {e}") from e

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(f"Invalid JSON from Sakura Cloud API for {method} {path}") from e

    @staticmethod
    def _resource_record_sets(item: Dict[str, Any]) -> List[Dict[str, Any]]:
        settings = item.get("Settings") or {}
        dns = settings.get("DNS") or {}
        return dns.get("ResourceRecordSets") or []
