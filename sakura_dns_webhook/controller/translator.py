"""
Translator module for Sakura DNS Webhook.

This module converts between external-dns endpoints and the records stored in a
Sakura Cloud DNS zone.
"""

import logging
from typing import Iterable, List, Optional

from sakura_dns_webhook.models.errors import ValidationError
from sakura_dns_webhook.models.models import (
    ALIAS_PROPERTY,
    DEFAULT_TTL,
    DEFAULT_TXT_PREFIX,
    RECORD_TYPE_ALIAS,
    RECORD_TYPE_CNAME,
    RECORD_TYPE_TXT,
    Endpoint,
    ProviderSpecificProperty,
    Record,
)


class Translator:
    """
    Converts endpoints to zone records and back for a single zone.
    """

    def __init__(self, zone_name: str, txt_prefix: str = DEFAULT_TXT_PREFIX):
        """
        Initialize a Translator.

        Args:
            zone_name: Name of the managed zone, e.g. example.com
            txt_prefix: Name prefix of the TXT registry records
        """
        self.zone_name = zone_name
        self.txt_prefix = txt_prefix
        self.logger = logging.getLogger("sakura-dns-webhook.translator")

    @property
    def zone_suffix(self) -> str:
        return f".{self.zone_name}"

    def to_record(self, endpoint: Optional[Endpoint]) -> Record:
        """
        Converts an endpoint into a zone record.

        Args:
            endpoint: Endpoint to convert

        Returns:
            Record: Record with a zone-relative name and normalized targets

        Raises:
            ValidationError: If no endpoint is given or it has no targets
        """
        if endpoint is None:
            raise ValidationError("Cannot convert a missing endpoint")
        if not endpoint.targets:
            raise ValidationError(f"Endpoint {endpoint.id} has no targets")

        record_type = self._record_type(endpoint)
        name = self._relative_name(endpoint.dns_name)
        targets = [self._normalize_target(record_type, t) for t in endpoint.targets]

        ttl = DEFAULT_TTL
        if endpoint.record_ttl is not None and endpoint.record_ttl > 0:
            ttl = int(endpoint.record_ttl)

        return Record(type=record_type, name=name, targets=targets, ttl=ttl)

    def to_records(self, endpoints: Optional[Iterable[Optional[Endpoint]]]) -> List[Record]:
        """
        Converts a list of endpoints, skipping missing entries.

        Args:
            endpoints: Endpoints to convert

        Returns:
            List[Record]: Converted records
        """
        records = []
        for endpoint in endpoints or []:
            if endpoint is None:
                self.logger.debug("Skipping empty endpoint entry")
                continue
            records.append(self.to_record(endpoint))
        return records

    def to_endpoint(self, record: Record) -> Endpoint:
        """
        Converts a zone record into an endpoint.

        Args:
            record: Record to convert

        Returns:
            Endpoint: Endpoint with a fully qualified name
        """
        dns_name = record.name
        if not dns_name.endswith(self.zone_suffix):
            dns_name += self.zone_suffix

        record_type = record.type
        provider_specific = []
        if record.type == RECORD_TYPE_ALIAS:
            record_type = RECORD_TYPE_CNAME
            provider_specific.append(
                ProviderSpecificProperty(name=ALIAS_PROPERTY, value="true")
            )

        return Endpoint(
            dns_name=dns_name,
            record_type=record_type,
            targets=list(record.targets),
            record_ttl=record.ttl,
            provider_specific=provider_specific,
        )

    def to_endpoints(self, records: Optional[Iterable[Record]]) -> List[Endpoint]:
        """
        Converts a list of zone records. Always returns a list.

        Args:
            records: Records to convert

        Returns:
            List[Endpoint]: Converted endpoints, empty if there are no records
        """
        return [self.to_endpoint(record) for record in records or []]

    def _record_type(self, endpoint: Endpoint) -> str:
        # Registry ownership records are always stored as TXT
        if endpoint.record_type == RECORD_TYPE_TXT and endpoint.dns_name.startswith(
            self.txt_prefix
        ):
            return RECORD_TYPE_TXT

        if (
            endpoint.record_type == RECORD_TYPE_CNAME
            and endpoint.get_provider_specific(ALIAS_PROPERTY) == "true"
        ):
            return RECORD_TYPE_ALIAS

        return endpoint.record_type

    def _relative_name(self, dns_name: str) -> str:
        name = dns_name
        # Only trim a real zone suffix, never an unrelated tail of the name
        if self.zone_name and name.endswith(self.zone_suffix):
            name = name[: -len(self.zone_suffix)]
        if name.endswith("."):
            name = name[:-1]
        return name

    @staticmethod
    def _normalize_target(record_type: str, target: str) -> str:
        if record_type == RECORD_TYPE_TXT:
            if len(target) >= 2 and target.startswith('"') and target.endswith('"'):
                return target[1:-1]
            return target
        if record_type in (RECORD_TYPE_CNAME, RECORD_TYPE_ALIAS):
            if not target.endswith("."):
                return target + "."
        return target
