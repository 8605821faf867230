"""OpenAI-backed explanation evaluator."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from codetutor.config import settings
from codetutor.models import ValidationRequest, ValidationVerdict
from codetutor.prompts import EXPLAIN_IT_BACK
from codetutor.services.evaluator import EvaluatorError

log = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def parse_verdict_json(raw_text: str) -> dict[str, Any]:
    """Parse model output into a dict, tolerating Markdown code fences."""
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        json_match = _FENCE.search(raw_text)
        if not json_match:
            raise
        data = json.loads(json_match.group(1))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class LLMEvaluator:
    def __init__(self, client: Optional[Any] = None, model: Optional[str] = None):
        if client is None:
            if not settings.OPENAI_API_KEY:
                raise ValueError("OPENAI_API_KEY is not set")
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self.client = client
        self.model = model or settings.OPENAI_MODEL

    async def evaluate(self, request: ValidationRequest) -> ValidationVerdict:
        """Ask the model to judge the explanation."""
        prompt = EXPLAIN_IT_BACK.format(
            language=request.language,
            code=request.code,
            explanation=request.explanation,
        )
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=prompt,
                reasoning={"effort": "medium"},
            )
        except OpenAIError as e:
            raise EvaluatorError(f"OpenAI request failed: {e}") from e

        raw_text = response.output_text
        try:
            return ValidationVerdict.model_validate(parse_verdict_json(raw_text))
        except (ValueError, ValidationError) as e:
            log.warning(f"Unparseable verdict from {self.model}: {raw_text[:120]!r}")
            raise EvaluatorError(f"Malformed verdict: {e}") from e
