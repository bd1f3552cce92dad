"""
EC2 autoscaling source module for auto53.

This module is responsible for fetching the instances of autoscaling groups
from EC2 and turning them into AutoScalingGroup snapshots.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from auto53.models.errors import ConfigError, InventoryError
from auto53.models.models import AutoScalingGroup, Instance

AUTOSCALING_GROUP_TAG = "aws:autoscaling:groupName"
RUNNING_STATE = "running"

# EC2 caps the number of values of a single filter
_MAX_FILTER_VALUES = 200


class AutoScalingGroupSource:
    """
    Source that fetches autoscaling group membership from EC2 instance tags.
    """

    def __init__(
        self,
        client=None,
        region: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize an AutoScalingGroupSource.

        Args:
            client: boto3 EC2 client, created from the default session when omitted
            region: AWS region for the client
            logger: Logger to report to
        """
        self.client = client or boto3.client(
            "ec2",
            region_name=region,
            config=BotoConfig(retries={"mode": "adaptive", "max_attempts": 10}),
        )
        self.logger = logger or logging.getLogger("auto53.source.ec2")

    async def auto_scaling_groups(
        self, group_names: Iterable[str]
    ) -> Dict[str, AutoScalingGroup]:
        """
        Returns the requested autoscaling groups with their instances.

        Every requested group is present in the result, empty when it has no
        instances.

        Args:
            group_names: Names of the groups to fetch

        Returns:
            Dict[str, AutoScalingGroup]: Groups keyed by name

        Raises:
            ConfigError: If a group name is empty
            InventoryError: If EC2 cannot be queried
        """
        groups: Dict[str, AutoScalingGroup] = {}
        for name in group_names:
            if not name:
                raise ConfigError("rule does not have an autoscaling group specified")
            groups.setdefault(name, AutoScalingGroup(name=name))

        if not groups:
            return groups

        names = list(groups)
        for start in range(0, len(names), _MAX_FILTER_VALUES):
            chunk = names[start : start + _MAX_FILTER_VALUES]
            for raw in self._describe_instances(chunk):
                instance = self._instance_from_ec2(raw)
                group_name = instance.tags.get(AUTOSCALING_GROUP_TAG)
                group = groups.get(group_name)
                if group is None:
                    raise InventoryError(
                        f"couldn't find autoscaling group '{group_name}' for instance {instance.id}"
                    )
                group.instances.append(instance)

        for group in groups.values():
            self.logger.debug(
                f"Autoscaling group {group.name} has {len(group.instances)} instances"
            )
        return groups

    def _describe_instances(self, group_names: List[str]) -> List[Dict[str, Any]]:
        filters = [{"Name": f"tag:{AUTOSCALING_GROUP_TAG}", "Values": group_names}]
        instances = []
        try:
            paginator = self.client.get_paginator("describe_instances")
            for page in paginator.paginate(Filters=filters):
                for reservation in page.get("Reservations", []):
                    instances.extend(reservation.get("Instances", []))
        except (ClientError, BotoCoreError) as e:
            raise InventoryError(
                f"failed to describe instances of groups {', '.join(group_names)}"
            ) from e
        return instances

    @staticmethod
    def _instance_from_ec2(raw: Dict[str, Any]) -> Instance:
        tags = {tag["Key"]: tag["Value"] for tag in raw.get("Tags", [])}
        return Instance(
            id=raw["InstanceId"],
            public_ip=raw.get("PublicIpAddress", ""),
            private_ip=raw.get("PrivateIpAddress", ""),
            tags=tags,
            running=raw.get("State", {}).get("Name") == RUNNING_STATE,
        )
