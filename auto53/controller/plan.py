"""
Plan module for auto53.

This module is responsible for calculating the evaluations needed to bring the
current records of a zone in line with the desired records.
"""

import logging
from typing import Dict, List, Optional

from auto53.models.errors import InputError
from auto53.models.models import Evaluation, EvaluationKind, Record

_KIND_ORDER = {EvaluationKind.REMOVE: 0, EvaluationKind.ADD: 1}


class Plan:
    """
    Plan diffs current records against desired records by content fingerprint.

    A record whose addresses changed has a different fingerprint, so it shows
    up as a removal of the old record and an addition of the new one.
    """

    def __init__(
        self,
        current: Optional[List[Record]],
        desired: Optional[List[Record]],
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize a Plan.

        Args:
            current: Records currently present in the zones
            desired: Records the zones should contain
            logger: Logger to report the plan to
        """
        self.current = current
        self.desired = desired
        self.logger = logger or logging.getLogger("auto53.plan")

    def calculate_evaluations(self) -> List[Evaluation]:
        """
        Calculate the evaluations needed to converge.

        Removals are listed before additions.

        Returns:
            List[Evaluation]: Evaluations to be applied

        Raises:
            InputError: If current or desired records were not provided
        """
        if self.current is None or self.desired is None:
            raise InputError("current and desired records must be provided")

        current_by_fingerprint = self._index(self.current)
        desired_by_fingerprint = self._index(self.desired)

        evaluations: List[Evaluation] = []

        for fp, record in current_by_fingerprint.items():
            if fp in desired_by_fingerprint:
                self.logger.debug(f"Record {record.name} in zone {record.zone.key} is up-to-date")
                continue
            self.logger.debug(f"Record {record.name} {record.ips} will be removed")
            evaluations.append(Evaluation(EvaluationKind.REMOVE, record))

        for fp, record in desired_by_fingerprint.items():
            if fp in current_by_fingerprint:
                continue
            self.logger.debug(f"Record {record.name} {record.ips} will be added")
            evaluations.append(Evaluation(EvaluationKind.ADD, record))

        return evaluations

    @staticmethod
    def _index(records: List[Record]) -> Dict[int, Record]:
        # equal fingerprints carry equal content, the last one wins
        return {record.fingerprint: record for record in records}


def diff(
    current: Optional[List[Record]],
    desired: Optional[List[Record]],
    logger: Optional[logging.Logger] = None,
) -> List[Evaluation]:
    """
    Shorthand for ``Plan(current, desired).calculate_evaluations()``.
    """
    return Plan(current, desired, logger=logger).calculate_evaluations()


def sort_evaluations(evaluations: List[Evaluation]) -> List[Evaluation]:
    """
    Sort evaluations by zone, record name and kind, removals first.

    Args:
        evaluations: Evaluations in any order

    Returns:
        List[Evaluation]: Sorted copy
    """
    return sorted(
        evaluations,
        key=lambda ev: (ev.record.zone.key, ev.record.name, _KIND_ORDER[ev.kind]),
    )


def summarize(evaluations: List[Evaluation]) -> Dict[str, int]:
    """
    Count evaluations by kind.

    Returns:
        Dict[str, int]: ``{"add": n, "remove": m}``
    """
    counts = {kind.value: 0 for kind in EvaluationKind}
    for evaluation in evaluations:
        counts[evaluation.kind.value] += 1
    return counts
