"""
Exception hierarchy for auto53.

Every failure raised by the reconciliation engine or by its AWS collaborators
inherits from :class:`Auto53Error`.
"""

from typing import List, Optional


# ── Base ──────────────────────────────────────────────────────────────
class Auto53Error(Exception):
    """Root exception for all auto53 errors."""


# ── Configuration ─────────────────────────────────────────────────────
class ConfigError(Auto53Error):
    """Missing or inconsistent configuration (rules, groups, config file)."""


class TemplateError(Auto53Error):
    """A record name template could not be compiled or rendered."""

    def __init__(self, message: str, template: Optional[str] = None):
        if template is not None:
            message = f"{message} (template '{template}')"
        super().__init__(message)
        self.template = template


# ── Reconciliation ────────────────────────────────────────────────────
class InputError(Auto53Error):
    """Current or desired records were not provided to the reconciler."""


class UnknownEvaluationKind(Auto53Error):
    """An evaluation carried a kind other than add or remove."""


# ── Collaborators ─────────────────────────────────────────────────────
class InventoryError(Auto53Error):
    """Failed to retrieve autoscaling group instances from EC2."""


class RecordSourceError(Auto53Error):
    """Failed to retrieve the records of a hosted zone."""


class SubmissionError(Auto53Error):
    """A zone change batch was rejected by the DNS provider.

    Attributes:
        zone_id: Zone whose batch failed.
        applied: Zones whose batches were applied before the failure.
    """

    def __init__(self, zone_id: str, message: str, applied: Optional[List[str]] = None):
        super().__init__(f"failed to submit change batch for zone {zone_id}: {message}")
        self.zone_id = zone_id
        self.applied = list(applied or [])
