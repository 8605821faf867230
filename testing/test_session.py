"""Tests for the explain-it-back session state machine."""

import asyncio
import inspect

import pytest

from codetutor.models import (
    DEGRADED_FEEDBACK,
    Phase,
    UnderstandingLevel,
    ValidationRequest,
    ValidationVerdict,
)
from codetutor.services.evaluator import EvaluatorError, HttpEvaluator
from codetutor.services.llm import LLMEvaluator
from codetutor.session import Evaluator, ValidationSession


class FakeEvaluator:
    """Records requests and returns (or raises) a canned result."""

    def __init__(self, result=None, error=None, gate=None):
        self.result = result
        self.error = error
        self.gate = gate
        self.requests: list[ValidationRequest] = []
        self.phase_during_call = None
        self.session = None

    async def evaluate(self, request):
        self.requests.append(request)
        if self.session is not None:
            self.phase_during_call = self.session.phase
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


def make_session(evaluator, **kwargs):
    calls = []
    session = ValidationSession(
        code="def add(a, b):\n    return a + b",
        language="python",
        evaluator=evaluator,
        on_validation_complete=lambda passed, feedback: calls.append((passed, feedback)),
        **kwargs,
    )
    evaluator.session = session
    return session, calls


def passing_verdict():
    return ValidationVerdict(
        passed=True, understanding_level=UnderstandingLevel.EXCELLENT, feedback="Nice work"
    )


def failing_verdict():
    return ValidationVerdict(
        passed=False,
        understanding_level=UnderstandingLevel.PARTIAL,
        feedback="You skipped the return value.",
        concepts_missed=["return values"],
    )


def test_new_session_starts_explaining_without_verdict():
    session, _ = make_session(FakeEvaluator(result=passing_verdict()))

    assert session.phase is Phase.EXPLAINING
    assert session.verdict is None
    assert session.explanation_draft == ""
    assert not session.can_submit


def test_success_stores_verdict_and_notifies_host_once():
    evaluator = FakeEvaluator(result=passing_verdict())
    session, calls = make_session(evaluator)

    issued = asyncio.run(session.submit("  It adds two numbers and returns the sum.  "))

    assert issued is True
    assert evaluator.phase_during_call is Phase.VALIDATING
    assert evaluator.requests == [
        ValidationRequest(
            code="def add(a, b):\n    return a + b",
            language="python",
            explanation="It adds two numbers and returns the sum.",
        )
    ]
    assert session.phase is Phase.RESULT
    assert session.verdict == passing_verdict()
    assert calls == [(True, "Nice work")]


def test_mapping_response_is_validated_into_verdict():
    evaluator = FakeEvaluator(
        result={
            "passed": False,
            "understanding": "good",
            "feedback": "Close!",
            "followUpQuestions": ["What if b is a string?"],
        }
    )
    session, calls = make_session(evaluator)

    asyncio.run(session.submit("adds numbers"))

    assert session.verdict.understanding_level is UnderstandingLevel.GOOD
    assert session.verdict.follow_up_questions == ["What if b is a string?"]
    assert calls == [(False, "Close!")]


def test_blank_explanation_is_ignored():
    evaluator = FakeEvaluator(result=passing_verdict())
    session, calls = make_session(evaluator)

    for blank in ("", "   ", "\n\t "):
        assert asyncio.run(session.submit(blank)) is False

    assert session.phase is Phase.EXPLAINING
    assert evaluator.requests == []
    assert calls == []


def test_double_submit_makes_one_call():
    async def scenario():
        gate = asyncio.Event()
        evaluator = FakeEvaluator(result=passing_verdict(), gate=gate)
        session, calls = make_session(evaluator)
        session.update_draft("It adds two numbers.")

        first = asyncio.create_task(session.submit())
        await asyncio.sleep(0)
        assert session.phase is Phase.VALIDATING
        assert session.is_busy
        assert session.submit_label == "Checking..."
        assert session.update_draft("changed") is False

        second = await session.submit()
        gate.set()
        assert await first is True
        return evaluator, session, calls, second

    evaluator, session, calls, second = asyncio.run(scenario())

    assert second is False
    assert len(evaluator.requests) == 1
    assert session.phase is Phase.RESULT
    assert calls == [(True, "Nice work")]


def test_concurrent_submits_issue_a_single_call():
    async def scenario():
        evaluator = FakeEvaluator(result=passing_verdict())
        session, _ = make_session(evaluator)
        session.update_draft("It adds two numbers.")
        results = await asyncio.gather(session.submit(), session.submit())
        return evaluator, results

    evaluator, results = asyncio.run(scenario())

    assert sorted(results) == [False, True]
    assert len(evaluator.requests) == 1


def test_transport_failure_gives_degraded_verdict_without_callback():
    evaluator = FakeEvaluator(error=EvaluatorError("connection refused"))
    session, calls = make_session(evaluator)

    asyncio.run(session.submit("It adds two numbers."))

    assert session.phase is Phase.RESULT
    assert session.verdict.passed is False
    assert session.verdict.understanding_level is UnderstandingLevel.NEEDS_WORK
    assert session.verdict.feedback == DEGRADED_FEEDBACK
    assert session.verdict.concepts_covered == []
    assert session.verdict.concepts_missed == []
    assert session.verdict.follow_up_questions == []
    assert calls == []
    assert len(evaluator.requests) == 1


def test_unexpected_exception_and_malformed_payload_are_degraded():
    for evaluator in (
        FakeEvaluator(error=KeyError("boom")),
        FakeEvaluator(result={"passed": "maybe"}),
    ):
        session, calls = make_session(evaluator)

        asyncio.run(session.submit("It adds two numbers."))

        assert session.verdict == ValidationVerdict.degraded()
        assert calls == []


def test_retry_after_failed_verdict_returns_to_empty_draft():
    session, _ = make_session(FakeEvaluator(result=failing_verdict()))
    asyncio.run(session.submit("It does math."))

    assert session.can_retry
    assert session.close_label == "Close"
    assert session.retry() is True
    assert session.phase is Phase.EXPLAINING
    assert session.verdict is None
    assert session.explanation_draft == ""


def test_retry_after_degraded_verdict_is_allowed():
    session, _ = make_session(FakeEvaluator(error=EvaluatorError("502")))
    asyncio.run(session.submit("It does math."))

    assert session.retry() is True


def test_retry_after_passed_verdict_is_rejected():
    session, _ = make_session(FakeEvaluator(result=passing_verdict()))
    asyncio.run(session.submit("It adds two numbers."))

    assert not session.can_retry
    assert session.retry() is False
    assert session.phase is Phase.RESULT
    assert session.verdict == passing_verdict()
    assert session.close_label == "Awesome! Continue Coding"


def test_retry_while_explaining_is_rejected():
    session, _ = make_session(FakeEvaluator(result=failing_verdict()))

    assert session.retry() is False
    assert session.phase is Phase.EXPLAINING


def test_passed_and_level_are_not_reconciled():
    verdict = ValidationVerdict(
        passed=True, understanding_level=UnderstandingLevel.NEEDS_WORK, feedback="ok"
    )
    session, calls = make_session(FakeEvaluator(result=verdict))

    asyncio.run(session.submit("It adds."))

    assert session.verdict.passed is True
    assert session.verdict.understanding_level is UnderstandingLevel.NEEDS_WORK
    assert not session.can_retry
    assert calls == [(True, "ok")]


def test_close_resets_from_every_phase():
    closed = []

    # Explaining
    session, _ = make_session(FakeEvaluator(result=passing_verdict()), on_close=lambda: closed.append(1))
    session.update_draft("half an explanation")
    session.close()
    assert session.explanation_draft == ""
    assert session.verdict is None
    assert session.closed

    # Result
    session, _ = make_session(FakeEvaluator(result=failing_verdict()), on_close=lambda: closed.append(2))
    asyncio.run(session.submit("It does math."))
    session.close()
    assert session.explanation_draft == ""
    assert session.verdict is None

    assert closed == [1, 2]


def test_close_while_validating_discards_verdict_but_still_notifies_host():
    async def scenario():
        gate = asyncio.Event()
        evaluator = FakeEvaluator(result=passing_verdict(), gate=gate)
        session, calls = make_session(evaluator)
        task = asyncio.create_task(session.submit("It adds two numbers."))
        await asyncio.sleep(0)
        session.close()
        gate.set()
        await task
        return session, calls

    session, calls = asyncio.run(scenario())

    assert session.verdict is None
    assert session.explanation_draft == ""
    assert session.phase is Phase.EXPLAINING
    assert calls == [(True, "Nice work")]


def test_close_while_validating_failure_does_not_notify_host():
    async def scenario():
        gate = asyncio.Event()
        evaluator = FakeEvaluator(error=EvaluatorError("timeout"), gate=gate)
        session, calls = make_session(evaluator)
        task = asyncio.create_task(session.submit("It adds two numbers."))
        await asyncio.sleep(0)
        session.close()
        gate.set()
        await task
        return session, calls

    session, calls = asyncio.run(scenario())

    assert session.verdict is None
    assert calls == []


def test_cancelled_call_returns_to_explaining():
    async def scenario():
        gate = asyncio.Event()
        evaluator = FakeEvaluator(result=passing_verdict(), gate=gate)
        session, calls = make_session(evaluator)
        task = asyncio.create_task(session.submit("It adds two numbers."))
        await asyncio.sleep(0)
        assert session.phase is Phase.VALIDATING
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return evaluator, session, calls

    evaluator, session, calls = asyncio.run(scenario())

    assert session.phase is Phase.EXPLAINING
    assert session.verdict is None
    assert session.explanation_draft == "It adds two numbers."
    assert session.can_submit
    assert calls == []

    evaluator.gate = None
    assert asyncio.run(session.submit()) is True
    assert session.phase is Phase.RESULT
    assert len(evaluator.requests) == 2


def test_evaluators_expose_async_evaluate():
    evaluate = Evaluator.evaluate

    assert inspect.iscoroutinefunction(evaluate)
    assert inspect.iscoroutinefunction(FakeEvaluator.evaluate)
    assert inspect.iscoroutinefunction(HttpEvaluator.evaluate)
    assert inspect.iscoroutinefunction(LLMEvaluator.evaluate)


def test_closed_session_ignores_input():
    evaluator = FakeEvaluator(result=passing_verdict())
    session, _ = make_session(evaluator)
    session.close()

    assert session.update_draft("late text") is False
    assert asyncio.run(session.submit("late text")) is False
    assert evaluator.requests == []
