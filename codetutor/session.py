"""Explain-it-back session: the learner explains their code, an evaluator judges it.

Lifecycle:
    EXPLAINING --submit--> VALIDATING --(verdict | failure)--> RESULT
    RESULT --retry (only when not passed)--> EXPLAINING
    any --close--> closed (draft and verdict discarded)

Exactly one evaluator call is made per accepted submit. Failures never escape
`submit()`; they land in RESULT with a fixed needs-work verdict, and the host
callback fires once for every genuine evaluator response, even one that
arrives after the session was closed. A cancelled call leaves the session
explaining, draft untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Protocol, Union

from codetutor.models import Phase, ValidationRequest, ValidationVerdict

log = logging.getLogger(__name__)

CompletionCallback = Callable[[bool, str], None]


class Evaluator(Protocol):
    """Anything that can judge an explanation."""

    async def evaluate(
        self, request: ValidationRequest
    ) -> Union[ValidationVerdict, Mapping[str, Any]]: ...


SUBMIT_LABEL = "Check My Understanding"
SUBMIT_BUSY_LABEL = "Checking..."
CONTINUE_LABEL = "Awesome! Continue Coding"
CLOSE_LABEL = "Close"


class ValidationSession:
    """State machine for one explain-it-back interaction."""

    def __init__(
        self,
        code: str,
        language: str,
        evaluator: Evaluator,
        on_validation_complete: Optional[CompletionCallback] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self._code = code
        self._language = language
        self.evaluator = evaluator
        self.on_validation_complete = on_validation_complete
        self.on_close = on_close

        self._draft = ""
        self._phase = Phase.EXPLAINING
        self._verdict: Optional[ValidationVerdict] = None
        self._closed = False

    @property
    def code(self) -> str:
        return self._code

    @property
    def language(self) -> str:
        return self._language

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def verdict(self) -> Optional[ValidationVerdict]:
        return self._verdict

    @property
    def explanation_draft(self) -> str:
        return self._draft

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_busy(self) -> bool:
        return self._phase is Phase.VALIDATING

    @property
    def can_submit(self) -> bool:
        return (
            not self._closed
            and self._phase is Phase.EXPLAINING
            and bool(self._draft.strip())
        )

    @property
    def can_retry(self) -> bool:
        return (
            not self._closed
            and self._phase is Phase.RESULT
            and self._verdict is not None
            and not self._verdict.passed
        )

    @property
    def submit_label(self) -> str:
        return SUBMIT_BUSY_LABEL if self.is_busy else SUBMIT_LABEL

    @property
    def close_label(self) -> str:
        # Label only; "continue" and "close" do the same thing.
        if self._verdict is not None and self._verdict.passed:
            return CONTINUE_LABEL
        return CLOSE_LABEL

    def update_draft(self, text: str) -> bool:
        """Replace the explanation draft. Only allowed while explaining."""
        if self._closed or self._phase is not Phase.EXPLAINING:
            log.debug(f"Ignoring draft edit in phase {self._phase.value}")
            return False
        self._draft = text
        return True

    async def submit(self, explanation: Optional[str] = None) -> bool:
        """Send the draft to the evaluator.

        Returns True if an evaluator call was made. Blank drafts, submits
        while a call is in flight and submits on a closed session are
        ignored.
        """
        if explanation is not None:
            self.update_draft(explanation)
        if not self.can_submit:
            log.debug(
                f"Ignoring submit (phase={self._phase.value}, closed={self._closed}, "
                f"blank={not self._draft.strip()})"
            )
            return False

        # Must happen before the first await so re-entrant submits see it.
        self._phase = Phase.VALIDATING
        request = ValidationRequest(
            code=self._code,
            language=self._language,
            explanation=self._draft.strip(),
        )
        log.info(f"Validating explanation ({len(request.explanation)} chars, {self._language})")

        verdict: ValidationVerdict
        succeeded = False
        try:
            verdict = self._coerce(await self.evaluator.evaluate(request))
            succeeded = True
        except Exception as e:
            log.error(f"Explain it back error: {e}")
            verdict = ValidationVerdict.degraded()
        except BaseException:
            # Cancelled: back to explaining with the draft intact.
            if not self._closed:
                self._phase = Phase.EXPLAINING
            raise

        if self._closed:
            log.info("Session closed while validating; discarding verdict")
            if succeeded and self.on_validation_complete is not None:
                self.on_validation_complete(verdict.passed, verdict.feedback)
            return True

        self._verdict = verdict
        self._phase = Phase.RESULT
        log.info(
            f"Verdict: passed={verdict.passed} "
            f"understanding={verdict.understanding_level.value} (evaluator_ok={succeeded})"
        )

        if succeeded and self.on_validation_complete is not None:
            self.on_validation_complete(verdict.passed, verdict.feedback)
        return True

    def retry(self) -> bool:
        """Go back to explaining after a failed attempt. Starts from an empty draft."""
        if not self.can_retry:
            log.debug(f"Ignoring retry in phase {self._phase.value}")
            return False
        self._verdict = None
        self._draft = ""
        self._phase = Phase.EXPLAINING
        return True

    def close(self) -> None:
        """Discard everything and tell the host to unmount. Allowed from any phase."""
        self._draft = ""
        self._verdict = None
        self._phase = Phase.EXPLAINING
        self._closed = True
        if self.on_close is not None:
            self.on_close()

    @staticmethod
    def _coerce(result: Union[ValidationVerdict, Mapping[str, Any]]) -> ValidationVerdict:
        if isinstance(result, ValidationVerdict):
            return result
        return ValidationVerdict.model_validate(result)
