"""
Zone store interface for Sakura DNS Webhook.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from sakura_dns_webhook.models.models import Record, ZoneSnapshot


class ZoneStore(ABC):
    """
    Remote storage of a zone's complete record list.

    Zones are only ever read and rewritten as a whole.
    """

    @abstractmethod
    async def find_zone(self, zone_name: str) -> str:
        """
        Resolve a zone name to the store's zone identifier.

        Args:
            zone_name: Zone name, e.g. example.com

        Returns:
            str: Zone identifier

        Raises:
            NotFoundError: If the zone does not exist
            RemoteError: If the store cannot be queried
        """

    @abstractmethod
    async def read_zone(self, zone_id: str) -> ZoneSnapshot:
        """
        Read the current record list of a zone.

        Args:
            zone_id: Zone identifier

        Returns:
            ZoneSnapshot: Records plus the token to pass to write_zone

        Raises:
            RemoteError: If the zone cannot be read
        """

    @abstractmethod
    async def write_zone(
        self, zone_id: str, records: List[Record], concurrency_token: Optional[str]
    ) -> None:
        """
        Replace the complete record list of a zone.

        Args:
            zone_id: Zone identifier
            records: New record list
            concurrency_token: Token from the snapshot the records were computed from

        Raises:
            ConflictError: If the zone changed since the token was issued
            RemoteError: If the write fails
        """

    async def close(self) -> None:
        """
        Release any resources held by the store.
        """
