"""
Controller module for auto53.

This module is responsible for coordinating between the autoscaling source and
the Route53 provider so that zone records follow autoscaling group membership.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from auto53.config.config import parse_duration
from auto53.controller.batch import plan_batches, submit_batches
from auto53.controller.plan import Plan, summarize
from auto53.models.errors import ConfigError, SubmissionError
from auto53.models.models import NamingRule, Zone
from auto53.source.synthesizer import synthesize
from auto53.utils.status import ReconciliationStatus
from auto53.utils.tables import format_auto_scaling_groups, format_evaluations


class Controller:
    """
    Controller that runs reconciliation passes.
    """

    def __init__(
        self,
        source,
        provider,
        rules: List[NamingRule],
        interval: str = "2m",
        dry_run: bool = False,
        status: Optional[ReconciliationStatus] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize a Controller.

        Args:
            source: Autoscaling group source
            provider: Route53 provider
            rules: Naming rules, compiled here so bad templates fail at start-up
            interval: Reconciliation interval
            dry_run: Whether to print the evaluations instead of applying them
            status: Shared reconciliation status
            logger: Logger to report to
        """
        if not rules:
            raise ConfigError("at least one naming rule must be specified")
        for rule in rules:
            rule.compile()

        self.source = source
        self.provider = provider
        self.rules = rules
        self.interval = parse_duration(interval)
        self.dry_run = dry_run
        self.status = status or ReconciliationStatus()
        self.logger = logger or logging.getLogger("auto53.controller")
        self._zones_resolved = False

    async def run_reconciliation_loop(self) -> None:
        """
        Runs the controller's reconciliation loop at the specified interval.
        """
        self.logger.debug(
            f"Reconciliation loop starting with interval {self.interval} seconds"
        )

        while True:
            try:
                await self.run_once()
            except Exception as e:
                self.logger.error(f"Error in reconciliation loop: {e}", exc_info=True)

            await asyncio.sleep(self.interval)

    async def run_once(self) -> List[str]:
        """
        Performs a single reconciliation pass.

        Returns:
            List[str]: IDs of the zones that received a change batch

        Raises:
            Auto53Error: If any step of the pass fails
        """
        try:
            applied = await self._reconcile()
        except SubmissionError as e:
            self.status.record_failure(e, e.applied)
            raise
        except Exception as e:
            self.status.record_failure(e)
            raise
        return applied

    async def _reconcile(self) -> List[str]:
        await self.resolve_zones()

        groups = await self.source.auto_scaling_groups(
            rule.auto_scaling_group for rule in self.rules
        )
        current = await self.provider.records([rule.zone for rule in self.rules])
        desired = synthesize(groups, self.rules, logger=self.logger)

        evaluations = Plan(current, desired, logger=self.logger).calculate_evaluations()
        counts = summarize(evaluations)

        # Log summary - use DEBUG level if system is stable
        log_level = logging.INFO if evaluations else logging.DEBUG
        self.logger.log(
            log_level,
            f"Running reconciliation: Found {len(desired)} desired and "
            f"{len(current)} current records, {counts['add']} to add and "
            f"{counts['remove']} to remove.",
        )

        if self.dry_run:
            print()
            print(format_auto_scaling_groups(groups))
            print()
            print(format_evaluations(evaluations))
            self.status.record_success(len(evaluations), [])
            return []

        if not evaluations:
            self.logger.debug("No changes to apply")
            self.status.record_success(0, [])
            return []

        batches = plan_batches(evaluations)
        applied = await submit_batches(batches, self.provider, logger=self.logger)
        self.status.record_success(len(evaluations), applied)
        return applied

    async def resolve_zones(self) -> None:
        """
        Complete the zone of every rule from the zones visible to the account.

        Rules may name a zone by ID, by name, or both; a name shared by several
        hosted zones (e.g. a public and a private one) must be given an ID.

        Raises:
            ConfigError: If a zone cannot be found or is ambiguous
        """
        if self._zones_resolved:
            return

        zones = await self.provider.zones()
        by_id: Dict[str, Zone] = {zone.id: zone for zone in zones}
        by_name: Dict[str, List[Zone]] = {}
        for zone in zones:
            by_name.setdefault(zone.name, []).append(zone)

        for rule in self.rules:
            if rule.zone.id:
                zone = by_id.get(rule.zone.id)
                if zone is None:
                    raise ConfigError(f"hosted zone {rule.zone.id} not found")
            else:
                candidates = by_name.get(rule.zone.name, [])
                if not candidates:
                    raise ConfigError(f"hosted zone named {rule.zone.name} not found")
                if len(candidates) > 1:
                    raise ConfigError(
                        f"hosted zone name {rule.zone.name} is ambiguous "
                        f"({', '.join(z.id for z in candidates)}), specify its ID"
                    )
                zone = candidates[0]
            rule.zone = zone

        self._zones_resolved = True
