"""Activity log aggregation into per-student history buckets."""

from collections.abc import Iterable

import structlog

from tutor_dashboard.dashboard.formatting import format_duration, format_timestamp
from tutor_dashboard.models.student import (
    NOT_AVAILABLE,
    ActivityHistory,
    ActivityRecord,
    ActivityType,
    HistoryItem,
    LevelTestGrade,
)

logger = structlog.get_logger()

WRITING = "Writing"
READING = "Reading"

# Activity types that carry a score through to the history row
_SCORED_TYPES = {ActivityType.LEVEL_TEST, ActivityType.SELF_STUDY}


def _to_item(record: ActivityRecord) -> HistoryItem:
    return HistoryItem(
        id=record.id,
        type=record.type,
        date=format_timestamp(record.timestamp, include_time=False),
        activity=record.details,
        score=record.result if record.type in _SCORED_TYPES else None,
        duration=format_duration(record.duration),
        history_id=record.history_id,
    )


def aggregate_activities(records: Iterable[ActivityRecord]) -> ActivityHistory:
    """Split a newest-first activity log into display buckets in one pass.

    Order within every bucket is the input order; nothing is re-sorted.
    The writing and reading grades take the first matching level test
    result, i.e. the most recent one. Records with an unknown type tag are
    kept out of the three known buckets and collected separately.

    Args:
        records: Activity records, newest first.

    Returns:
        ActivityHistory with level test, role-play, self-study and
        unrecognized buckets plus the grade summary.
    """
    level_tests: list[HistoryItem] = []
    role_plays: list[HistoryItem] = []
    self_studies: list[HistoryItem] = []
    unrecognized: list[HistoryItem] = []
    writing: str | None = None
    reading: str | None = None

    for record in records:
        item = _to_item(record)
        if record.type == ActivityType.LEVEL_TEST:
            level_tests.append(item)
            if record.details == WRITING and not writing:
                writing = record.result
            if record.details == READING and not reading:
                reading = record.result
        elif record.type == ActivityType.LEARNING:
            role_plays.append(item)
        elif record.type == ActivityType.SELF_STUDY:
            self_studies.append(item)
        else:
            logger.warning("unrecognized_activity_type", activity_id=record.id, type=record.type)
            unrecognized.append(item)

    return ActivityHistory(
        level_test=LevelTestGrade(
            writing=writing or NOT_AVAILABLE,
            reading=reading or NOT_AVAILABLE,
        ),
        level_test_history=level_tests,
        role_play_history=role_plays,
        self_study_history=self_studies,
        unrecognized_history=unrecognized,
    )
