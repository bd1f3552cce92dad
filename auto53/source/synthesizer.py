"""
Record synthesis for auto53.

This module turns autoscaling group membership and naming rules into the
records the hosted zones should contain.
"""

import logging
from typing import Dict, List, Optional

from auto53.models.errors import ConfigError, TemplateError
from auto53.models.models import AutoScalingGroup, NamingRule, Record


def synthesize(
    groups: Optional[Dict[str, AutoScalingGroup]],
    rules: Optional[List[NamingRule]],
    logger: Optional[logging.Logger] = None,
) -> List[Record]:
    """
    Build the desired records for the given groups and rules.

    Every instance of a rule's group renders the rule template into a record
    name. Instances rendering the same name in the same zone share one record
    and contribute their addresses to it in encounter order.

    Args:
        groups: Autoscaling groups keyed by name
        rules: Naming rules

    Returns:
        List[Record]: Desired records, in first-encounter order

    Raises:
        ConfigError: If an input is missing or a rule references an unknown group
        TemplateError: If a rule template does not compile or render
    """
    logger = logger or logging.getLogger("auto53.synthesizer")

    if groups is None:
        raise ConfigError("autoscaling groups must be provided")
    if rules is None:
        raise ConfigError("naming rules must be provided")

    records: Dict[str, Record] = {}

    for rule in rules:
        group = groups.get(rule.auto_scaling_group)
        if group is None:
            raise ConfigError(
                f"rule for zone {rule.zone.id or rule.zone.name} references unknown "
                f"autoscaling group '{rule.auto_scaling_group}'"
            )

        rule.compile()

        for instance in group.instances:
            # DNS names are case-insensitive and Route53 lists them lowercased
            name = rule.render(instance).lower()
            if not name:
                raise TemplateError(
                    f"rendered an empty record name for instance {instance.id}",
                    rule.record,
                )

            address = rule.address_of(instance)
            if not address:
                logger.warning(
                    f"Instance {instance.id} in group {group.name} has no "
                    f"{'private' if rule.private else 'public'} address, skipping"
                )
                continue

            record = Record(zone=rule.zone, name=name, ips=[address])
            existing = records.get(record.key)
            if existing is not None:
                existing.ips.append(address)
            else:
                records[record.key] = record

    logger.debug(
        f"Synthesized {len(records)} records from {len(rules)} rules "
        f"and {len(groups)} autoscaling groups"
    )
    return list(records.values())
