"""
Route53 provider module for auto53.

This module is responsible for interfacing with the Route53 API to read the
address records of hosted zones and to submit change batches.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from auto53.models.errors import RecordSourceError
from auto53.models.models import (
    RECORD_TYPE,
    Record,
    Zone,
    ZoneChangeBatch,
    normalize_zone_id,
    normalize_zone_name,
)

SOA_TYPE = "SOA"
ESCAPED_OCTET = re.compile(r"\\([0-7]{3})")


class Route53Provider:
    """
    Provider that interfaces with the Route53 API.
    """

    def __init__(
        self,
        client=None,
        region: Optional[str] = None,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize a Route53Provider.

        Args:
            client: boto3 Route53 client, created from the default session when omitted
            region: AWS region for the client
            dry_run: Whether to log change batches instead of submitting them
            logger: Logger to report to
        """
        self.client = client or boto3.client(
            "route53",
            region_name=region,
            config=BotoConfig(retries={"mode": "adaptive", "max_attempts": 10}),
        )
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger("auto53.provider.route53")

    async def zones(self) -> List[Zone]:
        """
        Returns the hosted zones visible to the account.

        Returns:
            List[Zone]: Hosted zones

        Raises:
            RecordSourceError: If the zones cannot be listed
        """
        zones = []
        try:
            paginator = self.client.get_paginator("list_hosted_zones")
            for page in paginator.paginate():
                for zone in page.get("HostedZones", []):
                    zones.append(
                        Zone(
                            id=normalize_zone_id(zone["Id"]),
                            name=normalize_zone_name(zone["Name"]),
                            private=zone.get("Config", {}).get("PrivateZone", False),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            raise RecordSourceError("failed to list hosted zones of account") from e

        self.logger.debug(f"Found {len(zones)} hosted zones")
        return zones

    async def zone_records(self, zone: Zone) -> List[Record]:
        """
        Returns the plain A records of a hosted zone.

        Alias records, records with a routing policy and records at the zone
        apex are not managed and are left out.

        Args:
            zone: Zone to list

        Returns:
            List[Record]: Current records, named relative to the zone

        Raises:
            RecordSourceError: If the records cannot be listed or the zone has no SOA
        """
        record_sets = self._list_record_sets(zone.id)

        apex = None
        for record_set in record_sets:
            if record_set["Type"] == SOA_TYPE:
                apex = decode_name(record_set["Name"])
                break

        if apex is None:
            raise RecordSourceError(f"couldn't find SOA record for zone {zone.id}")

        zone = Zone(id=zone.id, name=normalize_zone_name(apex), private=zone.private)
        suffix = "." + apex

        records = []
        for record_set in record_sets:
            if record_set["Type"] != RECORD_TYPE:
                continue

            name = decode_name(record_set["Name"])
            if "AliasTarget" in record_set or "SetIdentifier" in record_set:
                self.logger.debug(f"Skipping record {name} with alias or routing policy")
                continue
            if not name.endswith(suffix):
                self.logger.debug(f"Skipping record {name} outside of zone {apex}")
                continue

            records.append(
                Record(
                    zone=zone,
                    name=name[: -len(suffix)],
                    ips=[rr["Value"] for rr in record_set.get("ResourceRecords", [])],
                    ttl=record_set.get("TTL"),
                )
            )

        self.logger.debug(f"Zone {zone.id} ({zone.name}) has {len(records)} A records")
        return records

    async def records(self, zones: List[Zone]) -> List[Record]:
        """
        Returns the plain A records of every distinct zone.

        Args:
            zones: Zones to list, duplicates are listed once

        Returns:
            List[Record]: Current records of all zones
        """
        records: List[Record] = []
        seen = set()
        for zone in zones:
            if zone.key in seen:
                continue
            seen.add(zone.key)
            records.extend(await self.zone_records(zone))
        return records

    async def submit(self, batch: ZoneChangeBatch) -> Optional[str]:
        """
        Submits a change batch to its hosted zone.

        Args:
            batch: Changes for a single zone

        Returns:
            Optional[str]: Route53 change ID, None in dry-run mode

        Raises:
            ClientError: If Route53 rejects the batch
        """
        change_batch = self.change_batch(batch)

        if self.dry_run:
            self.logger.info(
                f"Dry run mode, not applying {len(batch.changes)} changes to zone {batch.zone.id}"
            )
            return None

        for change in batch.changes:
            self.logger.info(
                f"{change.action.value} {change.record_type} {change.name} -> "
                f"{', '.join(change.ips)} (TTL: {change.ttl})"
            )

        response = self.client.change_resource_record_sets(
            HostedZoneId=batch.zone.id, ChangeBatch=change_batch
        )
        change_id = response.get("ChangeInfo", {}).get("Id")
        self.logger.debug(f"Zone {batch.zone.id} change {change_id} submitted")
        return change_id

    @staticmethod
    def change_batch(batch: ZoneChangeBatch) -> Dict[str, Any]:
        """
        Translates a zone batch into the Route53 ChangeBatch shape.

        Args:
            batch: Changes for a single zone

        Returns:
            Dict[str, Any]: Route53 ChangeBatch
        """
        return {
            "Comment": batch.comment,
            "Changes": [
                {
                    "Action": change.action.value,
                    "ResourceRecordSet": {
                        "Name": change.name,
                        "Type": change.record_type,
                        "TTL": change.ttl,
                        "ResourceRecords": [{"Value": ip} for ip in change.ips],
                    },
                }
                for change in batch.changes
            ],
        }

    def _list_record_sets(self, zone_id: str) -> List[Dict[str, Any]]:
        record_sets = []
        try:
            paginator = self.client.get_paginator("list_resource_record_sets")
            for page in paginator.paginate(HostedZoneId=zone_id):
                record_sets.extend(page.get("ResourceRecordSets", []))
        except (ClientError, BotoCoreError) as e:
            raise RecordSourceError(
                f"failed to list resource records of zone {zone_id}"
            ) from e
        return record_sets


def decode_name(name: str) -> str:
    """
    Decodes the \\ooo octal escapes Route53 uses for characters outside of
    letters, digits and hyphens, and lowercases the result.
    """
    return ESCAPED_OCTET.sub(lambda m: chr(int(m.group(1), 8)), name).lower()
