from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

from formbuilder.models import Submission
from formbuilder.submissions import submission_to_document

logger = logging.getLogger(__name__)

NEW_RESPONSE = "new-response"


@dataclass(frozen=True)
class SubmissionEvent:
    form_id: str
    submission: Submission
    name: str = NEW_RESPONSE

    def as_payload(self) -> dict[str, Any]:
        return {
            "event": self.name,
            "form_id": self.form_id,
            "submission_id": self.submission.id,
            "data": submission_to_document(self.submission),
        }


def submission_event(submission: Submission) -> SubmissionEvent:
    return SubmissionEvent(form_id=submission.form_id, submission=submission)


class Notifier(Protocol):
    def publish(self, event: SubmissionEvent) -> None: ...


class RecordingNotifier:
    """Keeps published events in memory; handy for tests and local tooling."""

    def __init__(self) -> None:
        self.events: list[SubmissionEvent] = []

    def publish(self, event: SubmissionEvent) -> None:
        self.events.append(event)


def notify(notifiers: Iterable[Notifier], event: SubmissionEvent) -> int:
    delivered = 0
    for notifier in notifiers:
        try:
            notifier.publish(event)
        except Exception:
            logger.exception("Notifier failed: %s -> %r", event.name, notifier)
            continue
        delivered += 1
    logger.info("Event %s for form %s delivered to %d notifier(s)", event.name, event.form_id, delivered)
    return delivered
