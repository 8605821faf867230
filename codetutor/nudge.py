"""Turn a stuck-detector reason into a friendly nudge."""

from __future__ import annotations

import re
from typing import Optional

from codetutor.models import Advisory, Location, NudgeAction, StuckSignal

REPEATED_ERROR_MESSAGE = (
    "I noticed you're encountering the same error repeatedly. Would you like a hint?"
)
NO_PROGRESS_MESSAGE = "You've been working on this for a while. Need some guidance?"
APPROACH_MESSAGE = (
    "Your approach might need adjusting. Want me to point you in the right direction?"
)
DEFAULT_MESSAGE = "Looks like you might be stuck. Would you like some help?"

# Checked in order, first match wins. Matching ignores case.
REASON_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("repeated",), REPEATED_ERROR_MESSAGE),
    (("no progress", "No significant"), NO_PROGRESS_MESSAGE),
    (("logic", "approach"), APPROACH_MESSAGE),
)

NUDGE_ACTIONS = (
    NudgeAction(id="dismiss", label="I'm Fine"),
    NudgeAction(id="request_hint", label="Get Hint"),
)


def classify(reason_code: str) -> str:
    """Return the nudge message for a stuck reason."""
    text = reason_code.casefold()
    for needles, message in REASON_RULES:
        if any(needle.casefold() in text for needle in needles):
            return message
    return DEFAULT_MESSAGE


def context_line(location: Optional[Location]) -> Optional[str]:
    """Describe where the learner is working, e.g. "Working on: main.py (line 12)"."""
    if location is None or not location.file or not location.line:
        return None
    file_name = re.split(r"[\\/]", location.file)[-1]
    return f"Working on: {file_name} (line {location.line})"


def advise(signal: StuckSignal) -> Advisory:
    return Advisory(
        message=classify(signal.reason_code),
        context_line=context_line(signal.location),
        actions=list(NUDGE_ACTIONS),
    )
