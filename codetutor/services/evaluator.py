"""Explanation evaluator clients."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from codetutor.config import settings
from codetutor.models import ValidationRequest, ValidationVerdict

log = logging.getLogger(__name__)


class EvaluatorError(RuntimeError):
    """The evaluator could not produce a verdict."""


class HttpEvaluator:
    """Client for the tutor backend's explain-it-back endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base = (base_url or settings.EVALUATOR_BASE_URL).rstrip("/")
        self.timeout = settings.EVALUATOR_TIMEOUT if timeout is None else timeout
        self.headers = {"content-type": "application/json"}
        self.client = client

    async def evaluate(self, request: ValidationRequest) -> ValidationVerdict:
        """POST the explanation, return the parsed verdict."""
        url = f"{self.base}/api/explain-it-back"
        try:
            if self.client is not None:
                r = await self.client.post(
                    url, headers=self.headers, json=request.model_dump(), timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.post(url, headers=self.headers, json=request.model_dump())
            r.raise_for_status()
            return ValidationVerdict.model_validate(r.json())
        except httpx.HTTPStatusError as e:
            raise EvaluatorError(
                f"Validation failed: HTTP {e.response.status_code} | detail: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise EvaluatorError(f"Validation failed: {e}") from e
        except (ValueError, ValidationError) as e:
            # ValueError covers non-JSON bodies
            raise EvaluatorError(f"Malformed verdict: {e}") from e


def build_evaluator(backend: Optional[str] = None):
    """Create the evaluator named by `backend` ("http" or "openai")."""
    backend = (backend or settings.EVALUATOR_BACKEND).lower()
    if backend == "http":
        return HttpEvaluator()
    if backend == "openai":
        from codetutor.services.llm import LLMEvaluator

        return LLMEvaluator()
    raise ValueError(f"Unknown evaluator backend: {backend!r}")
