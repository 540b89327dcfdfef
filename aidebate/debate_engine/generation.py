"""Text generation for debaters and moderator narration.

``TextGenerationService`` never raises on upstream failure: after bounded
retries with exponential backoff it streams a fixed fallback sentence, so a
round can always complete.
"""

import asyncio
import logging
from dataclasses import dataclass

from aidebate.config.settings import AppConfig, PersonaConfig
from aidebate.models.manager import DEBATER_MODEL_IDS, MODERATOR_MODEL_ID, ModelManager
from .models import Argument
from .types import ChunkCallback, SleepFunction, Side

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundFormat:
    name: str
    objective: str
    guidance: str


ROUND_FORMATS: dict[int, RoundFormat] = {
    1: RoundFormat("Opening Statements", "Present position and core arguments", "Clearly state your claim with initial evidence"),
    2: RoundFormat("Rebuttals", "Counter opposing arguments", "Point out weaknesses in opponent's reasoning"),
    3: RoundFormat("Cross-Examination", "Challenge opponent's logic", "Use questions to reveal contradictions"),
    4: RoundFormat("Defense", "Strengthen your position", "Address challenges and reinforce arguments"),
    5: RoundFormat("Closing Arguments", "Final summary and persuasion", "Synthesize the debate with powerful conclusion"),
}
DEFAULT_ROUND_FORMAT = RoundFormat("Debate", "Advance your position", "Respond to your opponent and build your case")


def round_format(round_number: int) -> RoundFormat:
    return ROUND_FORMATS.get(round_number, DEFAULT_ROUND_FORMAT)


FALLBACK_ARGUMENTS = {
    "en": {
        Side.AFFIRMATIVE: "I support this position based on compelling evidence and logical reasoning that demonstrates clear benefits.",
        Side.NEGATIVE: "I oppose this position as the evidence suggests significant concerns that outweigh potential benefits.",
    },
    "zh": {
        Side.AFFIRMATIVE: "我支持这一立场，因为有力的证据和严密的逻辑表明其具有明显的益处。",
        Side.NEGATIVE: "我反对这一立场，因为证据表明其存在的重大隐患超过了潜在的益处。",
    },
}
FALLBACK_SUMMARY = {"en": "Argument received.", "zh": "论点已收到。"}
FALLBACK_EVALUATION = {
    "en": "Argument shows good logical structure.",
    "zh": "论点展现了良好的逻辑结构。",
}


def _language(language: str) -> str:
    return "zh" if language == "zh" else "en"


def fallback_argument(side: Side, language: str) -> str:
    return FALLBACK_ARGUMENTS[_language(language)][side]


@dataclass
class GenerationContext:
    """Everything a debater needs to produce one argument."""

    session_id: int
    round_number: int
    round_count: int
    topic: str
    side: Side
    history: list[Argument]
    persona: PersonaConfig
    language: str = "en"
    moderator_instruction: str | None = None


class TextGenerationService:
    """Streams debater arguments and moderator narration from the configured models."""

    def __init__(
        self,
        model_manager: ModelManager,
        config: AppConfig,
        sleep: SleepFunction = asyncio.sleep,
    ):
        self.model_manager = model_manager
        self.config = config
        self._sleep = sleep

    # ----------------------------------------------------------------- prompts

    def _language_instruction(self, language: str) -> str:
        if _language(language) == "zh":
            return "Respond in Simplified Chinese."
        return "Respond in English."

    def build_argument_messages(self, context: GenerationContext) -> list[dict[str, str]]:
        debate = self.config.debate
        side_label = context.side.label("en")
        fmt = round_format(context.round_number)

        system_prompt = (
            f"You are a {context.persona.personality.lower()} debater with "
            f"{context.persona.expertise_level.lower()}-level expertise, arguing the "
            f"{side_label.upper()} side of a formal debate. Stay on your side, engage "
            f"directly with your opponent, and write plain prose without headings or markup."
        )

        lines = [
            f"Topic: {context.topic}",
            f"Your position: {side_label}",
            f"Current round: {context.round_number} of {context.round_count}",
            f"Round format: {fmt.name} - {fmt.objective}",
            f"Goal: {fmt.guidance}",
            "",
        ]
        if context.moderator_instruction:
            lines += [f"Moderator instruction: {context.moderator_instruction}", ""]

        recent = context.history[-debate.history_window:]
        if recent:
            lines.append("Debate history:")
            for argument in recent:
                lines.append(f"[{argument.side.label('en')}] {argument.content}")
            lines.append("")

        lines.append(
            f"Write your argument for round {context.round_number} in at most "
            f"{debate.argument_char_limit} characters. Consider the opposing points, "
            f"build your position, and focus on logic, evidence and persuasiveness. "
            f"{self._language_instruction(context.language)}"
        )
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": "\n".join(lines)},
        ]

    def build_summary_messages(self, topic: str, argument: Argument, language: str) -> list[dict[str, str]]:
        limit = self.config.debate.summary_char_limit
        return [
            {
                "role": "system",
                "content": "You are a neutral debate moderator. Summarise arguments faithfully and briefly.",
            },
            {
                "role": "user",
                "content": (
                    f"Topic: {topic}\n\n"
                    f"{argument.side.label('en')} argument (round {argument.round_number}):\n"
                    f"{argument.content}\n\n"
                    f"Summarise the key point in at most {limit} characters. "
                    f"{self._language_instruction(language)}"
                ),
            },
        ]

    def build_evaluation_messages(
        self, topic: str, argument: Argument, history: list[Argument], language: str
    ) -> list[dict[str, str]]:
        limit = self.config.debate.evaluation_char_limit
        lines = [f"Topic: {topic}", ""]
        previous = [arg for arg in history if arg.argument_id != argument.argument_id][-3:]
        if previous:
            lines.append("Previous arguments:")
            for arg in reversed(previous):
                lines.append(f"- [{arg.side.label('en')}] {arg.content}")
            lines.append("")
        lines += [
            "Current argument to evaluate:",
            argument.content,
            "",
            f"Provide a balanced evaluation (max {limit} characters) considering logic, "
            f"relevance, and persuasiveness. {self._language_instruction(language)}",
        ]
        return [
            {
                "role": "system",
                "content": "You are an impartial debate moderator giving short, constructive commentary.",
            },
            {"role": "user", "content": "\n".join(lines)},
        ]

    # -------------------------------------------------------------- generation

    async def generate_argument(self, context: GenerationContext, chunk_callback: ChunkCallback) -> str:
        messages = self.build_argument_messages(context)
        return await self.stream_with_retry(
            DEBATER_MODEL_IDS[context.side.value],
            messages,
            chunk_callback,
            fallback=fallback_argument(context.side, context.language),
            label=f"session {context.session_id} round {context.round_number} {context.side.value} argument",
        )

    async def generate_summary(
        self, topic: str, argument: Argument, language: str, chunk_callback: ChunkCallback
    ) -> str:
        return await self.stream_with_retry(
            MODERATOR_MODEL_ID,
            self.build_summary_messages(topic, argument, language),
            chunk_callback,
            fallback=FALLBACK_SUMMARY[_language(language)],
            label=f"summary of argument {argument.argument_id}",
        )

    async def generate_evaluation(
        self,
        topic: str,
        argument: Argument,
        history: list[Argument],
        language: str,
        chunk_callback: ChunkCallback,
    ) -> str:
        return await self.stream_with_retry(
            MODERATOR_MODEL_ID,
            self.build_evaluation_messages(topic, argument, history, language),
            chunk_callback,
            fallback=FALLBACK_EVALUATION[_language(language)],
            label=f"evaluation of argument {argument.argument_id}",
        )

    async def stream_with_retry(
        self,
        model_id: str,
        messages: list[dict[str, str]],
        chunk_callback: ChunkCallback,
        fallback: str,
        label: str,
    ) -> str:
        """Stream a generation, retrying while nothing has been delivered.

        Exactly one completion signal is sent. If the upstream stream breaks
        after chunks were delivered, the partial text is kept as the result so
        the delivered chunks stay a prefix of it.
        """
        delivered: list[str] = []

        async def forward(chunk: str, is_complete: bool) -> None:
            # Completion is signalled here, not by the provider
            if is_complete or not chunk:
                return
            delivered.append(chunk)
            await chunk_callback(chunk, False)

        max_attempts = self.config.generation.max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                await self.model_manager.generate_response_stream(model_id, messages, forward)
                if not delivered:
                    raise ValueError("empty response")
                await chunk_callback("", True)
                return "".join(delivered)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if delivered:
                    logger.warning(f"Stream for {label} broke after {len(delivered)} chunks: {e}")
                    await chunk_callback("", True)
                    return "".join(delivered)

                logger.warning(f"Generation attempt {attempt}/{max_attempts} for {label} failed: {e}")
                if attempt < max_attempts:
                    await self._sleep(self.config.generation.backoff_base_seconds * 2 ** attempt)

        logger.error(f"Generation for {label} exhausted retries, using fallback text")
        await chunk_callback(fallback, False)
        await chunk_callback("", True)
        return fallback
