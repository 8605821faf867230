#!/usr/bin/env python3
"""Coding tutor widgets - terminal host.

Usage:
    python -m codetutor.main explain path/to/file.py              # Explain your code back
    python -m codetutor.main explain app.ts --language typescript # Override language
    python -m codetutor.main explain app.py --backend openai      # Judge with OpenAI directly
    python -m codetutor.main nudge "Repeated error: ..." --file src/app.py --line 12
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from codetutor.config import settings
from codetutor.models import Location, StuckSignal
from codetutor.nudge import advise
from codetutor.services.evaluator import build_evaluator
from codetutor.session import SUBMIT_BUSY_LABEL, Evaluator, ValidationSession
from codetutor.ui_utils import code_preview, render_verdict

log = logging.getLogger(__name__)

EXTENSION_LANGUAGES = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".c": "c",
    ".cpp": "cpp",
    ".go": "go",
    ".rs": "rust",
}


def guess_language(path: Path) -> str:
    return EXTENSION_LANGUAGES.get(path.suffix.lower(), "javascript")


def read_explanation() -> str:
    """Read lines until an empty line (or EOF)."""
    print("Explain your code as if teaching it to someone new to programming.")
    print("Finish with an empty line.")
    lines = []
    while True:
        try:
            line = input("> ")
        except EOFError:
            break
        if not line.strip():
            break
        lines.append(line)
    return "\n".join(lines)


def ask_yes_no(question: str) -> bool:
    try:
        return input(f"{question} [y/N] ").strip().lower() in ("y", "yes")
    except EOFError:
        return False


def on_validation_complete(passed: bool, _feedback: str) -> None:
    if passed:
        print("\n🎉 Great understanding demonstrated!")
    else:
        print("\nKeep practicing! Review the feedback for improvement areas.")


def run_explain(code: str, language: str, backend: Optional[str] = None) -> Optional[bool]:
    """Run one explain-it-back session. Returns the last verdict's `passed`, if any."""
    # Every attempt runs on this one loop; async HTTP clients are bound to it.
    return asyncio.run(explain_loop(code, language, build_evaluator(backend)))


async def explain_loop(code: str, language: str, evaluator: Evaluator) -> Optional[bool]:
    session = ValidationSession(
        code=code,
        language=language,
        evaluator=evaluator,
        on_validation_complete=on_validation_complete,
    )
    print(f"\n🎓 Teaching is the best way to learn!\n\nYour code ({language}):")
    print(code_preview(code))
    print()

    passed: Optional[bool] = None
    while not session.closed:
        explanation = read_explanation()
        if not session.update_draft(explanation) or not session.can_submit:
            print("Nothing to check.")
            session.close()
            break

        print(SUBMIT_BUSY_LABEL)
        await session.submit()

        verdict = session.verdict
        if verdict is None:
            break
        passed = verdict.passed
        print("\n".join(render_verdict(verdict)))
        print()

        if session.can_retry and ask_yes_no("Try again?"):
            session.retry()
            continue
        print(session.close_label)
        session.close()
    return passed


def run_nudge(reason: str, file: Optional[str], line: Optional[int]) -> None:
    location = Location(file=file, line=line) if file and line is not None else None
    advisory = advise(StuckSignal(reason_code=reason, location=location))
    print(f"💡 {advisory.message}")
    if advisory.context_line:
        print(advisory.context_line)
    print("   ".join(f"[{action.label}]" for action in advisory.actions))


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Coding tutor widgets")
    sub = parser.add_subparsers(dest="command", required=True)

    explain = sub.add_parser("explain", help="Explain a code file back and get it checked")
    explain.add_argument("file", type=Path)
    explain.add_argument("--language", type=str, default=None)
    explain.add_argument(
        "--backend",
        type=str,
        choices=["http", "openai"],
        default=settings.EVALUATOR_BACKEND,
        help="Who judges the explanation",
    )

    nudge = sub.add_parser("nudge", help="Show the nudge for a stuck reason")
    nudge.add_argument("reason", type=str)
    nudge.add_argument("--file", type=str, default=None)
    nudge.add_argument("--line", type=int, default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")

    if args.command == "nudge":
        run_nudge(args.reason, args.file, args.line)
        return 0

    if not args.file.exists():
        log.error(f"File not found: {args.file}")
        return 1
    code = args.file.read_text()
    language = args.language or guess_language(args.file)
    run_explain(code, language, args.backend)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
