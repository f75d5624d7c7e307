"""
Service layer for bulk cohort assignment.

Computes the grouping and passes it to the cohort collaborator, which owns
creating cohorts and memberships (and reports duplicate memberships as
CONFLICT). Also tabulates a preview for operators before anything is saved.
"""

import logging

import pandas as pd

from app_types import BulkAssignParams, BulkAssignPreview, PlayerForGrouping
from bulk_assign import compute_bulk_assign_groups
from store_protocols import CohortConsumer

logger = logging.getLogger("darts.cohort_service")


def bulk_assign_preview_frame(preview: BulkAssignPreview) -> pd.DataFrame:
    """Creates a DataFrame with one row per assigned player."""
    rows = [
        {
            "Cohort": group.name,
            "Player": member_id,
            "Cohort Size": len(group.member_ids),
            "End Date": preview.end_date.isoformat(),
        }
        for group in preview.groups
        for member_id in group.member_ids
    ]
    return pd.DataFrame(rows, columns=["Cohort", "Player", "Cohort Size", "End Date"])


def run_bulk_assign(
    params: BulkAssignParams,
    players: list[PlayerForGrouping],
    consumer: CohortConsumer,
) -> BulkAssignPreview:
    """
    Group the candidates and hand the cohorts to the consumer.

    Returns:
        The preview that was handed over.

    Raises:
        ValidationError: If the parameters are invalid (nothing is handed over).
        NotFoundError, ConflictError, UpstreamError: Passed through from the consumer.
    """
    preview = compute_bulk_assign_groups(params, players)
    assigned = sum(len(group.member_ids) for group in preview.groups)
    logger.info(
        f"Bulk assign '{params.name_prefix.strip()}': {len(preview.groups)} cohort(s), "
        f"{assigned} of {len(players)} player(s), ending {preview.end_date.isoformat()}"
    )

    if not preview.groups:
        logger.info("No cohorts to create")
        return preview

    consumer.accept_groups(preview, params.schedule_id).unwrap()
    return preview
