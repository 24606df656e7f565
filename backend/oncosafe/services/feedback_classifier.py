"""Deterministic triage of submitted feedback.

Priority comes from keywords in the title and description; the first
matching level wins, checked from most to least severe. Category follows
from the ticket type. No I/O.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field

from oncosafe.models.feedback import FeedbackCategory, FeedbackPriority, FeedbackType

# ── Keyword sets, most severe first ─────────────────────────────────────────

_PRIORITY_KEYWORDS: tuple[tuple[FeedbackPriority, tuple[str, ...]], ...] = (
    (FeedbackPriority.CRITICAL, ("crash", "error", "broken", "not working", "critical", "urgent", "production")),
    (FeedbackPriority.HIGH, ("important", "blocking", "cannot", "issue", "problem", "bug")),
    (FeedbackPriority.MEDIUM, ("improve", "better", "enhance", "slow", "minor")),
    (FeedbackPriority.LOW, ("suggestion", "nice to have", "cosmetic", "polish")),
)

_CATEGORY_BY_TYPE = {
    FeedbackType.BUG: FeedbackCategory.UI_UX,
    FeedbackType.FEATURE_REQUEST: FeedbackCategory.CLINICAL_DECISION_SUPPORT,
    FeedbackType.IMPROVEMENT: FeedbackCategory.UI_UX,
    FeedbackType.PERFORMANCE_ISSUE: FeedbackCategory.PERFORMANCE,
    FeedbackType.SECURITY_CONCERN: FeedbackCategory.SECURITY,
    FeedbackType.INTEGRATION_ISSUE: FeedbackCategory.INTEGRATION,
    FeedbackType.USABILITY_ISSUE: FeedbackCategory.UI_UX,
}

# T-shirt sizes by priority, then type
_EFFORT = {
    FeedbackPriority.CRITICAL: {FeedbackType.BUG: "l", FeedbackType.FEATURE_REQUEST: "xl", FeedbackType.IMPROVEMENT: "m"},
    FeedbackPriority.HIGH: {FeedbackType.BUG: "m", FeedbackType.FEATURE_REQUEST: "l", FeedbackType.IMPROVEMENT: "s"},
    FeedbackPriority.MEDIUM: {FeedbackType.BUG: "s", FeedbackType.FEATURE_REQUEST: "m", FeedbackType.IMPROVEMENT: "xs"},
    FeedbackPriority.LOW: {FeedbackType.BUG: "xs", FeedbackType.FEATURE_REQUEST: "s", FeedbackType.IMPROVEMENT: "xs"},
}
_DEFAULT_EFFORT = "m"

_TOPIC_LABELS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("mobile", ("mobile",)),
    ("drugs", ("drug", "medication")),
    ("patient-data", ("patient",)),
)


@dataclass(frozen=True, slots=True)
class FeedbackClassification:
    type: FeedbackType
    category: FeedbackCategory
    priority: FeedbackPriority
    estimated_effort: str
    labels: list[str] = field(default_factory=list)


def classify_priority(text: str) -> FeedbackPriority:
    lowered = text.lower()
    for priority, keywords in _PRIORITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return priority
    return FeedbackPriority.MEDIUM


def classify_feedback(
    feedback_type: FeedbackType, title: str, description: str | None = None
) -> FeedbackClassification:
    """Derive category, priority, effort and labels for a ticket."""
    text = f"{title} {description or ''}".lower()
    priority = classify_priority(text)

    labels = [feedback_type.value, priority.value]
    for label, words in _TOPIC_LABELS:
        if any(word in text for word in words):
            labels.append(label)

    return FeedbackClassification(
        type=feedback_type,
        category=_CATEGORY_BY_TYPE.get(feedback_type, FeedbackCategory.GENERAL),
        priority=priority,
        estimated_effort=_EFFORT[priority].get(feedback_type, _DEFAULT_EFFORT),
        labels=labels,
    )


class TicketNumberer:
    """Issues ``ONCO-<n>`` ticket numbers, starting at 1 per process."""

    def __init__(self, prefix: str = "ONCO", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            return f"{self.prefix}-{next(self._counter)}"
