"""Base classes and interfaces for judging systems."""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from aidebate.models.manager import ModelManager

logger = logging.getLogger(__name__)


class JudgeResponseError(ValueError):
    """The judge model answered with something that is not a usable score."""


@dataclass
class JudgeEvaluation:
    """A single score with the judge's reasoning."""

    score: Decimal
    feedback: str


class BaseJudge(ABC):
    """Abstract base class for LLM-backed judges."""

    def __init__(self, model_manager: ModelManager, judge_number: int, model_id: str):
        self.model_manager = model_manager
        self.judge_number = judge_number
        self.model_id = model_id

    @property
    @abstractmethod
    def name(self) -> str:
        """Judge name/identifier."""
        pass

    async def _ask(self, system_prompt: str, user_prompt: str) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        async with self.model_manager.model_session(self.model_id):
            return await self.model_manager.generate_response(self.model_id, messages)

    def _parse_scored_response(self, response: str, max_score: Decimal) -> JudgeEvaluation:
        """Parse ``{"score": ..., "feedback": ...}`` and check the score range."""
        data = self._extract_json(response)
        try:
            score = Decimal(str(data["score"]))
        except (KeyError, InvalidOperation) as e:
            raise JudgeResponseError(f"{self.name} returned no numeric score: {data}") from e

        if not score.is_finite() or score < 0 or score > max_score:
            raise JudgeResponseError(f"{self.name} score {score} outside 0..{max_score}")

        feedback = str(data.get("feedback") or "").strip()
        return JudgeEvaluation(score=score, feedback=feedback)

    def _extract_json(self, response: str) -> dict[str, Any]:
        """Pull a JSON object out of a model response, repairing it if needed."""
        markdown_match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", response, re.DOTALL)
        if markdown_match:
            json_text = markdown_match.group(1)
        else:
            json_match = re.search(r"\{.*\}", response, re.DOTALL)
            json_text = json_match.group() if json_match else response.strip()

        try:
            data = json.loads(json_text)
        except json.JSONDecodeError:
            try:
                data = json.loads(self._repair_json(json_text))
            except json.JSONDecodeError as e:
                raise JudgeResponseError(f"{self.name} returned unparsable JSON: {response[:200]!r}") from e

        if not isinstance(data, dict):
            raise JudgeResponseError(f"{self.name} returned {type(data).__name__}, expected an object")
        return data

    def _repair_json(self, json_text: str) -> str:
        """Attempt to repair common JSON issues from small models."""
        repair_json = json_text.strip()

        # Remove any trailing comma before closing braces/brackets
        repair_json = re.sub(r",(\s*[}\]])", r"\1", repair_json)

        # Fix missing quotes around keys
        repair_json = re.sub(
            r"([{,]\s*)([a-zA-Z_][a-zA-Z0-9_]*)\s*:", r'\1"\2":', repair_json
        )

        if not repair_json.endswith("}"):
            logger.warning("JSON appears truncated, attempting to complete it")

            open_quotes = repair_json.count('"') - repair_json.count('\\"')
            if open_quotes % 2 == 1:
                repair_json += '"'

            repair_json = repair_json.rstrip().rstrip(",")
            repair_json += "]" * (repair_json.count("[") - repair_json.count("]"))
            repair_json += "}" * (repair_json.count("{") - repair_json.count("}"))

        # Remove any text after the final closing brace
        last_brace = repair_json.rfind("}")
        if last_brace != -1:
            repair_json = repair_json[: last_brace + 1]

        if repair_json != json_text:
            logger.debug(f"Repaired JSON text for parsing: {repair_json}")

        return repair_json
