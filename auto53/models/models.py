"""
Data models for auto53.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from auto53.controller.fingerprint import fingerprint
from auto53.source.template import NameTemplate

HOSTED_ZONE_PREFIX = "/hostedzone/"
RECORD_TYPE = "A"
DEFAULT_TTL = 300
BATCH_COMMENT = "auto53: converge autoscaling group address records"


def normalize_zone_id(zone_id: str) -> str:
    """Strip the ``/hostedzone/`` prefix Route53 puts on zone identifiers."""
    if zone_id.startswith(HOSTED_ZONE_PREFIX):
        return zone_id[len(HOSTED_ZONE_PREFIX) :]
    return zone_id


def normalize_zone_name(name: str) -> str:
    """Drop the trailing dot of a fully-qualified zone name."""
    return name.rstrip(".")


@dataclass(frozen=True, eq=False)
class Zone:
    """
    A hosted zone. Two zones are the same zone when their keys match: the ID,
    or the name for a zone not yet resolved to an ID.
    """

    id: str
    name: str = ""
    private: bool = False

    @property
    def key(self) -> str:
        return self.id or self.name

    def __eq__(self, other):
        if not isinstance(other, Zone):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


@dataclass(frozen=True)
class Instance:
    """
    Snapshot of one EC2 instance, holding the values a record template may use.
    """

    id: str
    public_ip: str = ""
    private_ip: str = ""
    tags: Dict[str, str] = field(default_factory=dict, hash=False)
    running: bool = False

    def template_fields(self) -> Dict[str, object]:
        """
        Returns the fields visible to record name templates.

        Returns:
            Dict[str, object]: Field name to value
        """
        return {
            "Id": self.id,
            "PublicIp": self.public_ip,
            "PrivateIp": self.private_ip,
            "Tags": dict(self.tags),
            "Running": self.running,
        }


@dataclass
class AutoScalingGroup:
    """
    An autoscaling group and the instances that currently belong to it.
    """

    name: str
    instances: List[Instance] = field(default_factory=list)


@dataclass
class NamingRule:
    """
    Binds an autoscaling group to a zone and a record name template.

    A group may be bound by several rules, producing several records for
    the same machines.
    """

    auto_scaling_group: str
    zone: Zone
    record: str
    private: bool = False
    _template: Optional[NameTemplate] = field(
        default=None, init=False, repr=False, compare=False
    )

    def compile(self) -> NameTemplate:
        """
        Parse the record template once and keep it on the rule.

        Returns:
            NameTemplate: Compiled template

        Raises:
            TemplateError: If the template does not parse
        """
        if self._template is None or self._template.source != self.record:
            self._template = NameTemplate.compile(self.record)
        return self._template

    def render(self, instance: Instance) -> str:
        """
        Render the record name for an instance.

        Args:
            instance: Instance providing the template fields

        Returns:
            str: Record name relative to the zone
        """
        return self.compile().render(instance.template_fields())

    def address_of(self, instance: Instance) -> str:
        """Pick the address family this rule publishes."""
        return instance.private_ip if self.private else instance.public_ip


@dataclass
class Record:
    """
    An A record: a name in a zone mapping to one or more addresses.

    ttl is the TTL observed in the zone, unset for synthesized records.
    """

    zone: Zone
    name: str
    ips: List[str] = field(default_factory=list)
    ttl: Optional[int] = field(default=None, compare=False)

    @property
    def key(self) -> str:
        """Identity of the record name within the working set of a synthesis pass."""
        return f"{self.name}.{self.zone.key}"

    @property
    def fqdn(self) -> str:
        """Fully-qualified record name, trailing dot included."""
        return f"{self.name}.{self.zone.name}."

    @property
    def fingerprint(self) -> int:
        """Content fingerprint, recomputed on every access."""
        return fingerprint(self)


class EvaluationKind(Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass
class Evaluation:
    """
    A mutation the reconciler wants applied to a zone.
    """

    kind: EvaluationKind
    record: Record


class ChangeAction(str, Enum):
    CREATE = "CREATE"
    DELETE = "DELETE"


@dataclass
class ChangeDirective:
    """
    One primitive change inside a zone change batch.
    """

    action: ChangeAction
    name: str
    ips: List[str]
    record_type: str = RECORD_TYPE
    ttl: int = DEFAULT_TTL


@dataclass
class ZoneChangeBatch:
    """
    All changes to submit atomically to a single zone.
    """

    zone: Zone
    changes: List[ChangeDirective] = field(default_factory=list)
    comment: str = BATCH_COMMENT

    def has_changes(self) -> bool:
        """
        Check if the batch carries any change.

        Returns:
            bool: True if there are changes, False otherwise
        """
        return bool(self.changes)
