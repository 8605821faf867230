"""Helpers for rendering explain-it-back results."""

from __future__ import annotations

from typing import Iterable, Optional

from codetutor.config import settings
from codetutor.models import UnderstandingLevel, ValidationVerdict

# level -> (color token, emoji)
UNDERSTANDING_BADGES: dict[UnderstandingLevel, tuple[str, str]] = {
    UnderstandingLevel.EXCELLENT: ("accent-success", "🌟"),
    UnderstandingLevel.GOOD: ("accent-primary", "👍"),
    UnderstandingLevel.PARTIAL: ("accent-warning", "🤔"),
    UnderstandingLevel.NEEDS_WORK: ("accent-error", "💪"),
}

_missing = set(UnderstandingLevel) - set(UNDERSTANDING_BADGES)
if _missing:
    raise RuntimeError(f"No badge for understanding levels: {sorted(m.value for m in _missing)}")


def understanding_color(level: UnderstandingLevel) -> str:
    return UNDERSTANDING_BADGES[level][0]


def understanding_emoji(level: UnderstandingLevel) -> str:
    return UNDERSTANDING_BADGES[level][1]


def level_label(level: UnderstandingLevel) -> str:
    """Badge text, e.g. needs_work -> NEEDS WORK."""
    return level.value.replace("_", " ").upper()


def result_heading(passed: bool) -> str:
    return "✅ Great Job!" if passed else "📚 Keep Learning!"


def code_preview(code: str, limit: Optional[int] = None) -> str:
    """Truncate code shown above the explanation box."""
    limit = settings.CODE_PREVIEW_CHARS if limit is None else limit
    if len(code) <= limit:
        return code
    return code[:limit] + "..."


def _section(title: str, items: Iterable[str], bullet: str) -> list[str]:
    items = list(items)
    if not items:
        return []
    return ["", title] + [f"{bullet}{item}" for item in items]


def render_verdict(verdict: ValidationVerdict) -> list[str]:
    """Render a verdict as plain text lines (feedback is left as Markdown)."""
    level = verdict.understanding_level
    lines = [
        f"{understanding_emoji(level)} {level_label(level)}",
        "",
        result_heading(verdict.passed),
        verdict.feedback,
    ]
    lines += _section("✅ Concepts You Demonstrated:", verdict.concepts_covered, "  [+] ")
    lines += _section("📝 Concepts to Review:", verdict.concepts_missed, "  [-] ")
    lines += _section("🤔 Think About:", verdict.follow_up_questions, "  - ")
    return lines
