# backend/ai/text_service.py
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from ai import prompts, stub
from ai.llm_client import LLMClient, LLMMalformedOutput, LLMUnavailable
from ai.results import AIResult
from core.config import settings
from schemas.ai import Evaluation, GeneratedQuestion, OverallFeedback, ParsedResume

log = logging.getLogger(__name__)


class AITextService:
    """
    Maps (text, context) to structured data: parsed resumes, interview
    questions, per-answer evaluations and the end-of-session summary.

    Never raises for provider trouble; every method returns an AIResult.
    """

    def __init__(self, provider: Optional[str] = None, client: Optional[LLMClient] = None):
        self.provider = (provider or settings.ai_provider).lower()
        self.client = client or (LLMClient(self.provider) if self.provider != "stub" else None)

    # ---- plumbing ----
    def _raw(self, operation: str, prompt: str, offline: Callable[[], Any], **llm_kwargs) -> AIResult[Any]:
        if self.client is None:
            return AIResult.success(offline())
        try:
            return AIResult.success(
                self.client.generate_json(prompt, system=prompts.SYSTEM_PROMPT, **llm_kwargs)
            )
        except LLMUnavailable as e:
            log.warning("%s: AI provider unavailable: %s", operation, e)
            return AIResult.unavailable(str(e))
        except LLMMalformedOutput as e:
            log.warning("%s: malformed AI output: %s", operation, e)
            return AIResult.malformed(str(e))

    # ---- operations ----
    def parse_resume(self, resume_text: str) -> AIResult[Dict[str, Any]]:
        raw = self._raw(
            "parse_resume",
            prompts.RESUME_PARSE_TPL.format(resume=resume_text),
            lambda: stub.parse_resume(resume_text),
            temperature=0.1,
            max_tokens=2000,
        )
        if not raw.ok:
            return raw
        if not isinstance(raw.value, dict):
            return AIResult.malformed("resume parse is not a JSON object")
        try:
            parsed = ParsedResume.model_validate(raw.value)
        except ValidationError as e:
            return AIResult.malformed(f"resume parse failed validation: {e.error_count()} errors")
        return AIResult.success(parsed.model_dump(by_alias=True, mode="json"))

    def generate_questions(self, work_experience: List[Dict[str, Any]], count: int) -> AIResult[List[GeneratedQuestion]]:
        context = [
            {k: exp.get(k) for k in ("title", "company", "duration", "description", "skills")}
            for exp in work_experience
        ]
        raw = self._raw(
            "generate_questions",
            prompts.QUESTIONS_TPL.format(n=count, experience=json.dumps(context, indent=2)),
            lambda: stub.make_questions(context, count),
            temperature=0.3,
        )
        if not raw.ok:
            return raw
        items = raw.value.get("questions") if isinstance(raw.value, dict) else raw.value
        if not isinstance(items, list):
            return AIResult.malformed("question generation did not return a list")
        try:
            questions = [GeneratedQuestion.model_validate(q) for q in items]
        except ValidationError as e:
            return AIResult.malformed(f"question failed validation: {e.error_count()} errors")
        if len(questions) < count:
            return AIResult.malformed(f"expected {count} questions, got {len(questions)}")
        return AIResult.success(questions[:count])

    def evaluate_response(
        self,
        question: str,
        response: str,
        skills: List[str],
        work_experience: List[Dict[str, Any]],
    ) -> AIResult[Evaluation]:
        background = [
            {k: exp.get(k) for k in ("title", "company", "skills")} for exp in work_experience
        ]
        raw = self._raw(
            "evaluate_response",
            prompts.EVALUATION_TPL.format(
                question=question,
                response=response,
                skills=", ".join(skills),
                background=json.dumps(background, indent=2),
            ),
            lambda: stub.score_answer(question, response, skills),
            temperature=0.2,
            max_tokens=1000,
        )
        if not raw.ok:
            return raw
        try:
            return AIResult.success(Evaluation.model_validate(raw.value))
        except ValidationError as e:
            # out-of-range scores land here too; they are never clamped
            return AIResult.malformed(f"evaluation failed validation: {e.errors(include_url=False)}")

    def generate_overall_feedback(
        self,
        items: List[Dict[str, Any]],
        profile: Dict[str, Any],
    ) -> AIResult[OverallFeedback]:
        raw = self._raw(
            "generate_overall_feedback",
            prompts.OVERALL_TPL.format(
                profile=json.dumps(profile, indent=2),
                performance=json.dumps(items, indent=2),
            ),
            lambda: stub.summarize(items, profile),
            temperature=0.3,
            max_tokens=1200,
        )
        if not raw.ok:
            return raw
        try:
            return AIResult.success(OverallFeedback.model_validate(raw.value))
        except ValidationError as e:
            return AIResult.malformed(f"overall feedback failed validation: {e.errors(include_url=False)}")
