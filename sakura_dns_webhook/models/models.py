"""
Data models for Sakura DNS Webhook.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sakura_dns_webhook.models.errors import ValidationError

DEFAULT_TTL = 3600
DEFAULT_TXT_PREFIX = "_external-dns."
DEFAULT_API_URL = "https://secure.sakura.ad.jp/cloud/zone/is1a/api/cloud/1.1"

# Provider specific property marking a CNAME endpoint as an ALIAS record
ALIAS_PROPERTY = "alias"

RECORD_TYPE_A = "A"
RECORD_TYPE_AAAA = "AAAA"
RECORD_TYPE_CNAME = "CNAME"
RECORD_TYPE_TXT = "TXT"
RECORD_TYPE_ALIAS = "ALIAS"

# Record types announced to external-dns; ALIAS travels as CNAME + alias=true
SUPPORTED_RECORD_TYPES = [
    RECORD_TYPE_A,
    RECORD_TYPE_AAAA,
    RECORD_TYPE_CNAME,
    RECORD_TYPE_TXT,
]


@dataclass
class ProviderSpecificProperty:
    """
    A single provider specific name/value pair attached to an endpoint.
    """

    name: str
    value: str


@dataclass
class Endpoint:
    """
    Represents a DNS endpoint as exchanged with external-dns.
    """

    dns_name: str
    record_type: str
    targets: List[str] = field(default_factory=list)
    record_ttl: Optional[int] = None
    labels: Dict[str, str] = field(default_factory=dict)
    provider_specific: List[ProviderSpecificProperty] = field(default_factory=list)
    set_identifier: str = ""

    @property
    def id(self) -> str:
        """
        Generate a unique identifier for this endpoint.

        Returns:
            str: Unique identifier
        """
        return f"{self.dns_name}:{self.record_type}"

    def get_provider_specific(self, name: str) -> Optional[str]:
        """
        Look up a provider specific property by name.

        Args:
            name: Property name

        Returns:
            Optional[str]: Property value, or None if the property is not set
        """
        for prop in self.provider_specific:
            if prop.name == name:
                return prop.value
        return None

    @classmethod
    def from_dict(cls, data: Any) -> "Endpoint":
        """
        Decode an endpoint from its external-dns JSON representation.

        Args:
            data: Decoded JSON object

        Returns:
            Endpoint: Decoded endpoint

        Raises:
            ValidationError: If the payload is not a valid endpoint
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Endpoint must be an object, got {type(data).__name__}")

        dns_name = data.get("dnsName")
        record_type = data.get("recordType")
        if not dns_name or not record_type:
            raise ValidationError(f"Endpoint is missing dnsName or recordType: {data}")
        if not isinstance(dns_name, str) or not isinstance(record_type, str):
            raise ValidationError(f"dnsName and recordType must be strings: {data}")

        targets = data.get("targets") or []
        if not isinstance(targets, list) or not all(isinstance(t, str) for t in targets):
            raise ValidationError(f"Targets of {dns_name} must be a list of strings")

        labels = data.get("labels") or {}
        if not isinstance(labels, dict):
            raise ValidationError(f"Labels of {dns_name} must be an object")

        set_identifier = data.get("setIdentifier") or ""
        if not isinstance(set_identifier, str):
            raise ValidationError(f"setIdentifier of {dns_name} must be a string")

        ttl = data.get("recordTTL")
        if ttl is not None and (isinstance(ttl, bool) or not isinstance(ttl, int)):
            raise ValidationError(f"recordTTL of {dns_name} must be an integer, got {ttl!r}")

        provider_specific = []
        for prop in data.get("providerSpecific") or []:
            if not isinstance(prop, dict) or "name" not in prop:
                raise ValidationError(f"Invalid providerSpecific entry on {dns_name}: {prop!r}")
            provider_specific.append(
                ProviderSpecificProperty(name=prop["name"], value=str(prop.get("value", "")))
            )

        return cls(
            dns_name=dns_name,
            record_type=record_type,
            targets=list(targets),
            record_ttl=ttl,
            labels=dict(labels),
            provider_specific=provider_specific,
            set_identifier=set_identifier,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Encode this endpoint into its external-dns JSON representation.

        Returns:
            Dict[str, Any]: JSON-serialisable mapping
        """
        data: Dict[str, Any] = {
            "dnsName": self.dns_name,
            "targets": list(self.targets),
            "recordType": self.record_type,
        }
        if self.set_identifier:
            data["setIdentifier"] = self.set_identifier
        if self.record_ttl:
            data["recordTTL"] = self.record_ttl
        if self.labels:
            data["labels"] = dict(self.labels)
        if self.provider_specific:
            data["providerSpecific"] = [
                {"name": p.name, "value": p.value} for p in self.provider_specific
            ]
        return data


@dataclass
class Record:
    """
    Represents a DNS record as stored in the Sakura Cloud zone.

    The name is relative to the zone.
    """

    type: str
    name: str
    targets: List[str] = field(default_factory=list)
    ttl: int = DEFAULT_TTL

    def key(self) -> Tuple[str, str, str]:
        """
        Key used to match a stored record against a delete request.

        Returns:
            Tuple[str, str, str]: (type, name, first target)
        """
        first = self.targets[0] if self.targets else ""
        return (self.type, self.name, first)


@dataclass
class ZoneSnapshot:
    """
    The record list of a zone as read from the zone store.
    """

    zone_id: str
    zone_name: str
    records: List[Record] = field(default_factory=list)
    concurrency_token: Optional[str] = None


@dataclass
class ChangeSet:
    """
    Records to create and delete in a single zone merge.
    """

    create: List[Record] = field(default_factory=list)
    delete: List[Record] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.create or self.delete)


def _decode_endpoint_list(data: Dict[str, Any], key: str) -> List[Optional[Endpoint]]:
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError(f"'{key}' must be a list")
    # null entries are kept so they can be skipped during translation
    return [None if item is None else Endpoint.from_dict(item) for item in items]


@dataclass
class Changes:
    """
    Represents changes requested by external-dns.
    """

    create: List[Optional[Endpoint]] = field(default_factory=list)
    update_old: List[Optional[Endpoint]] = field(default_factory=list)
    update_new: List[Optional[Endpoint]] = field(default_factory=list)
    delete: List[Optional[Endpoint]] = field(default_factory=list)

    def has_changes(self) -> bool:
        """
        Check if there are any changes to be applied.

        Returns:
            bool: True if there are changes, False otherwise
        """
        return bool(self.create or self.update_old or self.update_new or self.delete)

    @classmethod
    def from_dict(cls, data: Any) -> "Changes":
        """
        Decode the body of an apply-changes request.

        Args:
            data: Decoded JSON object

        Returns:
            Changes: Requested changes

        Raises:
            ValidationError: If the payload is malformed
        """
        if not isinstance(data, dict):
            raise ValidationError("Change request must be a JSON object")

        return cls(
            create=_decode_endpoint_list(data, "create"),
            update_old=_decode_endpoint_list(data, "updateOld"),
            update_new=_decode_endpoint_list(data, "updateNew"),
            delete=_decode_endpoint_list(data, "delete"),
        )
