#!/usr/bin/env python3
"""
AI content providers.

Each provider takes a fully built prompt and returns parsed questions. The
remote providers make one request per call and expect the model to answer with
a JSON list of questions (optionally wrapped in ``{"questions": [...]}`` or a
markdown code fence). Transport failures are raised as NetworkError, bad
payloads as ContentError; ``AIQuestionGenerator`` decides what to do with them.

Content validation and language adjustment run locally for every provider.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import uuid
from typing import TYPE_CHECKING, Any

import anthropic
import boto3
import openai
from botocore.exceptions import BotoCoreError, ClientError

from kwizkid.core.constants import AIProviderType, Difficulty
from kwizkid.core.dataclasses import Question
from kwizkid.core.exceptions import ContentError, ErrorCodes, NetworkError
from kwizkid.services.child_safety import LanguageAdjuster

if TYPE_CHECKING:
    from kwizkid.config import Settings
    from kwizkid.services.protocols import AIProviderProtocol

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You write educational multiple choice quiz questions for children. "
    "Respond with a JSON array only. No markdown, no explanation outside the JSON."
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def parse_questions(text: str, default_difficulty: Difficulty = Difficulty.EASY) -> list[Question]:
    """
    Parse a model response into questions.

    Accepts a JSON array of question objects or an object with a
    ``questions`` array. Items missing required fields are skipped.

    Raises:
        ContentError: If the payload is not JSON or has no question list.

    """
    payload = text.strip()
    fenced = _FENCE_RE.match(payload)
    if fenced:
        payload = fenced.group(1)

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        msg = f"AI response is not valid JSON: {e.msg}"
        raise ContentError(msg, error_code=ErrorCodes.INVALID_AI_RESPONSE) from e

    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        msg = "AI response does not contain a question list"
        raise ContentError(msg, error_code=ErrorCodes.INVALID_AI_RESPONSE)

    questions = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            questions.append(Question.from_dict(item, str(uuid.uuid4()), default_difficulty))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed AI question: %s", e)
    return questions


class _LocalContentRules:
    """Validation and language adjustment shared by every provider."""

    language = LanguageAdjuster()

    async def validate_content(self, content: str) -> bool:
        return self.language.validate_content_for_children(content, age=0)

    async def adjust_language(self, content: str, age: int) -> str:
        return self.language.adjust_language_for_age(content, age)


# === Mock ===


class MockAIProvider(_LocalContentRules):
    """Canned questions for development and tests."""

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency

    async def generate_questions(self, prompt: str) -> list[Question]:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        return [
            Question(
                id=str(uuid.uuid4()),
                text="What is the capital of France?",
                options=("London", "Paris", "Berlin", "Madrid"),
                correct_answer=1,
                explanation="Paris is the capital city of France! It's famous for the Eiffel Tower.",
            ),
            Question(
                id=str(uuid.uuid4()),
                text="How many legs does a spider have?",
                options=("6", "8", "10", "12"),
                correct_answer=1,
                explanation="Spiders have 8 legs! They are arachnids, not insects.",
            ),
            Question(
                id=str(uuid.uuid4()),
                text="What do bees make?",
                options=("Milk", "Honey", "Butter", "Cheese"),
                correct_answer=1,
                explanation="Bees make honey! They collect nectar from flowers and turn it into honey.",
            ),
            Question(
                id=str(uuid.uuid4()),
                text="What color is the sun?",
                options=("Yellow", "White", "Orange", "Red"),
                correct_answer=1,
                explanation="The sun is actually white! It looks yellow from Earth because of our atmosphere.",
                difficulty=Difficulty.MEDIUM,
            ),
            Question(
                id=str(uuid.uuid4()),
                text="How many days are in a week?",
                options=("5", "6", "7", "8"),
                correct_answer=2,
                explanation="There are 7 days in a week!",
            ),
        ]


# === OpenAI ===


class OpenAIProvider(_LocalContentRules):
    """Chat completions through the OpenAI SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 60.0,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or openai.AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def generate_questions(self, prompt: str) -> list[Question]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as e:
            msg = f"OpenAI request failed: {e}"
            raise NetworkError(msg, error_code=ErrorCodes.PROVIDER_UNREACHABLE) from e

        content = response.choices[0].message.content or ""
        logger.debug("OpenAI returned %d characters", len(content))
        return parse_questions(content)


# === Anthropic ===


class ClaudeProvider(_LocalContentRules):
    """Messages API through the Anthropic SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-sonnet-20240229",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 60.0,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)

    async def generate_questions(self, prompt: str) -> list[Question]:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as e:
            msg = f"Claude request failed: {e}"
            raise NetworkError(msg, error_code=ErrorCodes.PROVIDER_UNREACHABLE) from e

        text = "".join(block.text for block in response.content if block.type == "text")
        logger.debug("Claude returned %d characters", len(text))
        return parse_questions(text)


# === AWS Bedrock ===


class BedrockProvider(_LocalContentRules):
    """Bedrock Converse API through boto3. The blocking call runs in a worker thread."""

    def __init__(
        self,
        region: str = "us-east-1",
        model: str = "anthropic.claude-3-sonnet-20240229-v1:0",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or boto3.client("bedrock-runtime", region_name=region)

    def _converse(self, prompt: str) -> dict[str, Any]:
        return self.client.converse(
            modelId=self.model,
            system=[{"text": SYSTEM_PROMPT}],
            messages=[{"role": "user", "content": [{"text": prompt}]}],
            inferenceConfig={"maxTokens": self.max_tokens, "temperature": self.temperature},
        )

    async def generate_questions(self, prompt: str) -> list[Question]:
        try:
            response = await asyncio.to_thread(self._converse, prompt)
        except (BotoCoreError, ClientError) as e:
            msg = f"Bedrock request failed: {e}"
            raise NetworkError(msg, error_code=ErrorCodes.PROVIDER_UNREACHABLE) from e

        blocks = response.get("output", {}).get("message", {}).get("content", [])
        text = "".join(block.get("text", "") for block in blocks)
        logger.debug("Bedrock returned %d characters", len(text))
        return parse_questions(text)


# === Factory ===


def create_provider(settings: Settings) -> AIProviderProtocol:
    """
    Build the provider selected in settings.

    Raises:
        ContentError: If the selected remote provider has no credentials configured.

    """
    provider_type = settings.ai_provider

    def missing(name: str) -> ContentError:
        msg = f"{provider_type.display_name} selected but {name} is not set"
        return ContentError(msg, error_code=ErrorCodes.PROVIDER_NOT_CONFIGURED)

    match provider_type:
        case AIProviderType.OPENAI:
            if not settings.openai_api_key:
                raise missing("KWIZKID_OPENAI_API_KEY")
            return OpenAIProvider(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                max_tokens=settings.ai_max_tokens,
                temperature=settings.ai_temperature,
                timeout=settings.ai_timeout,
            )
        case AIProviderType.CLAUDE:
            if not settings.claude_api_key:
                raise missing("KWIZKID_CLAUDE_API_KEY")
            return ClaudeProvider(
                api_key=settings.claude_api_key,
                model=settings.claude_model,
                max_tokens=settings.ai_max_tokens,
                temperature=settings.ai_temperature,
                timeout=settings.ai_timeout,
            )
        case AIProviderType.AWS_BEDROCK:
            return BedrockProvider(
                region=settings.aws_region,
                model=settings.bedrock_model,
                max_tokens=settings.ai_max_tokens,
                temperature=settings.ai_temperature,
            )
        case AIProviderType.MOCK:
            return MockAIProvider(latency=settings.mock_latency)
