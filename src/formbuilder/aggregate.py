from __future__ import annotations

import logging
from collections import Counter
from datetime import timezone, tzinfo
from typing import Any, Iterable
from zoneinfo import ZoneInfo

from formbuilder.models import AnalyticsReport, DateCount, FieldAnalytics, FormSchema, Submission
from formbuilder.registry import is_empty, is_option_bounded
from formbuilder.utils import ensure_aware

logger = logging.getLogger(__name__)


def resolve_timezone(tz: tzinfo | str | None) -> tzinfo:
    if tz is None:
        return timezone.utc
    if isinstance(tz, str):
        if tz.strip().upper() in {"", "UTC", "Z"}:
            return timezone.utc
        return ZoneInfo(tz)
    return tz


def _bucket_values(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if not is_empty(item)]
    if is_empty(value):
        return []
    return [str(value)]


def count_by_date(submissions: Iterable[Submission], tz: tzinfo | str | None = None) -> tuple[DateCount, ...]:
    zone = resolve_timezone(tz)
    counts: Counter = Counter()
    for submission in submissions:
        counts[ensure_aware(submission.submitted_at).astimezone(zone).date()] += 1
    return tuple(DateCount(day, counts[day]) for day in sorted(counts))


def aggregate(
    schema: FormSchema,
    submissions: Iterable[Submission],
    tz: tzinfo | str | None = None,
) -> AnalyticsReport:
    """Summarize submissions: daily counts plus value frequencies for option fields.

    Only dropdown, radio and checkbox fields get an entry in ``field_analytics``.
    A checkbox answer adds one to every selected value, while the per-field
    ``total_responses`` counts submissions that answered the field at all.
    """
    items = list(submissions)
    option_fields = [field for field in schema.field_map.values() if is_option_bounded(field.type)]
    answer_maps = [submission.answer_map() for submission in items]

    field_analytics: dict[str, FieldAnalytics] = {}
    for field in option_fields:
        value_counts: dict[str, int] = {}
        responded = 0
        for answers in answer_maps:
            values = _bucket_values(answers.get(field.id))
            if not values:
                continue
            responded += 1
            for value in values:
                value_counts[value] = value_counts.get(value, 0) + 1
        field_analytics[field.id] = FieldAnalytics(
            field_id=field.id,
            label=field.label,
            type=field.type,
            total_responses=responded,
            value_counts=value_counts,
        )

    report = AnalyticsReport(
        total_responses=len(items),
        responses_by_date=count_by_date(items, tz),
        field_analytics=field_analytics,
    )
    logger.debug(
        "Aggregated %d submission(s) for form %s across %d option field(s)",
        report.total_responses,
        schema.id,
        len(field_analytics),
    )
    return report
