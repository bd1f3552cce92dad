"""
Plain-text tables printed during dry runs.
"""

from typing import Dict, List, Sequence

from auto53.models.models import AutoScalingGroup, Evaluation, EvaluationKind

_EVALUATION_LABELS = {
    EvaluationKind.ADD: "create",
    EvaluationKind.REMOVE: "delete",
}


def format_table(title: str, header: Sequence[str], rows: List[Sequence[str]]) -> str:
    """
    Render rows as left-aligned columns under a title.

    Args:
        title: Line printed above the table
        header: Column names
        rows: Table rows, one value per column

    Returns:
        str: Rendered table
    """
    widths = [len(column) for column in header]
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))

    def line(values: Sequence[str]) -> str:
        return "  ".join(value.ljust(width) for value, width in zip(values, widths)).rstrip()

    return "\n".join([title, line(header)] + [line(row) for row in rows])


def format_auto_scaling_groups(groups: Dict[str, AutoScalingGroup]) -> str:
    rows = [
        [group.name, instance.id, instance.private_ip, instance.public_ip]
        for group in groups.values()
        for instance in group.instances
    ]
    return format_table(
        "AUTOSCALING GROUPS", ["NAME", "INSTANCE", "PRIVATE", "PUBLIC"], rows
    )


def format_evaluations(evaluations: List[Evaluation]) -> str:
    rows = [
        [
            _EVALUATION_LABELS[evaluation.kind],
            evaluation.record.fqdn,
            ", ".join(evaluation.record.ips),
        ]
        for evaluation in evaluations
    ]
    return format_table("EVALUATIONS", ["TYPE", "RECORD", "VALUES"], rows)
