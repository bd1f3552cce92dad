"""
Batch module for auto53.

This module groups evaluations per hosted zone into change batches and hands
them, zone by zone, to the provider that submits them.
"""

import logging
from typing import Dict, List, Optional

from auto53.models.errors import SubmissionError, UnknownEvaluationKind
from auto53.models.models import (
    DEFAULT_TTL,
    ChangeAction,
    ChangeDirective,
    Evaluation,
    EvaluationKind,
    ZoneChangeBatch,
)

ACTIONS = {
    EvaluationKind.ADD: ChangeAction.CREATE,
    EvaluationKind.REMOVE: ChangeAction.DELETE,
}


def plan_batches(
    evaluations: List[Evaluation], ttl: int = DEFAULT_TTL
) -> Dict[str, ZoneChangeBatch]:
    """
    Build one change batch per zone.

    Directives keep the order of the evaluations they come from.

    Args:
        evaluations: Evaluations produced by the reconciler
        ttl: TTL of created records. Deletions carry the TTL observed in the
            zone when known, since Route53 only deletes an exact match

    Returns:
        Dict[str, ZoneChangeBatch]: Batches keyed by zone ID, or zone name
            for a zone without an ID

    Raises:
        UnknownEvaluationKind: If an evaluation is neither an add nor a remove
    """
    batches: Dict[str, ZoneChangeBatch] = {}

    for evaluation in evaluations:
        action = ACTIONS.get(evaluation.kind)
        if action is None:
            raise UnknownEvaluationKind(
                f"unknown evaluation kind {evaluation.kind!r} for record "
                f"{evaluation.record.name}"
            )

        record = evaluation.record
        batch = batches.get(record.zone.key)
        if batch is None:
            batch = batches[record.zone.key] = ZoneChangeBatch(zone=record.zone)

        batch.changes.append(
            ChangeDirective(
                action=action,
                name=record.fqdn,
                ips=list(record.ips),
                ttl=_directive_ttl(action, record, ttl),
            )
        )

    return batches


def _directive_ttl(action: ChangeAction, record, ttl: int) -> int:
    if action is ChangeAction.DELETE and record.ttl is not None:
        return record.ttl
    return ttl


async def submit_batches(
    batches: Dict[str, ZoneChangeBatch],
    provider,
    logger: Optional[logging.Logger] = None,
) -> List[str]:
    """
    Submit zone batches one after the other.

    The first rejected batch stops the run; zones submitted before it stay
    applied.

    Args:
        batches: Batches keyed by zone ID
        provider: Object exposing ``async submit(batch)``

    Returns:
        List[str]: IDs of the zones that were submitted

    Raises:
        SubmissionError: If the provider rejects a batch
    """
    logger = logger or logging.getLogger("auto53.batch")
    applied: List[str] = []

    for zone_id in sorted(batches):
        batch = batches[zone_id]
        if not batch.has_changes():
            continue

        logger.info(
            f"Submitting {len(batch.changes)} changes to zone {zone_id} ({batch.zone.name})"
        )
        try:
            await provider.submit(batch)
        except Exception as e:
            raise SubmissionError(zone_id, str(e), applied=applied) from e
        applied.append(zone_id)

    return applied
