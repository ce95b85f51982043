"""
Schema enforcement: have the generation model rank the candidates and
return them as typed JSON.
"""

import asyncio
import json
import logging
from typing import List

from cinemate.clients.chat import ChatClient, ChatError
from cinemate.core.errors import SchemaViolation, UpstreamUnavailable
from cinemate.core.pipeline.models import (
    CandidateSet,
    FilterSpec,
    RankedRecommendation,
    RecommendationBatch,
    TasteProfile,
)
from cinemate.core.pipeline.prompts import build_correction_message, build_ranking_messages

logger = logging.getLogger(__name__)

MAX_ERROR_CHARS = 500


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_recommendations(content: str) -> List[RankedRecommendation]:
    """
    Parse the generation model's reply.

    Raises:
        ValueError: If the reply is not JSON, does not match the schema,
            or holds no recommendations
    """
    data = json.loads(_strip_code_fence(content))
    if isinstance(data, list):
        data = {"recommendations": data}
    batch = RecommendationBatch.model_validate(data)
    if not batch.recommendations:
        raise ValueError("no recommendations in reply")
    return batch.recommendations


class SchemaEnforcer:
    """
    Runs the generation call, re-prompting once if the reply is unusable.
    """

    def __init__(self, client: ChatClient, timeout: float = 30.0, max_corrections: int = 1):
        self.client = client
        self.timeout = timeout
        self.max_corrections = max_corrections

    async def _complete(self, messages) -> str:
        try:
            result = await asyncio.wait_for(
                self.client.complete(messages, json_mode=True), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error("Generation call timed out after %.0fs", self.timeout)
            raise UpstreamUnavailable("generation", f"timed out after {self.timeout:g}s")
        except ChatError as e:
            raise UpstreamUnavailable("generation", str(e)) from e
        return result.content

    async def enforce(
        self,
        candidates: CandidateSet,
        profile: TasteProfile,
        filters: FilterSpec,
    ) -> List[RankedRecommendation]:
        """
        Returns:
            At most filters.count recommendations, best match first

        Raises:
            SchemaViolation: If no usable JSON arrives after the correction attempt
            UpstreamUnavailable: On transport errors or timeouts
        """
        messages = build_ranking_messages(candidates.raw_text, profile, filters, candidates.items)
        attempt = 0
        while True:
            content = await self._complete(messages)
            try:
                recommendations = parse_recommendations(content)
                break
            except ValueError as e:
                error = str(e)[:MAX_ERROR_CHARS]
                if attempt >= self.max_corrections:
                    logger.error("Generation reply still unusable after %d correction(s): %s", attempt, error)
                    raise SchemaViolation(error) from e
                attempt += 1
                logger.warning("Generation reply unusable, re-prompting: %s", error)
                messages = messages + [
                    {"role": "assistant", "content": content},
                    build_correction_message(error, filters.count),
                ]

        if len(recommendations) > filters.count:
            recommendations = recommendations[:filters.count]
        elif len(recommendations) < filters.count:
            logger.warning(
                "Generation returned %d of %d requested recommendations",
                len(recommendations), filters.count,
            )
        return recommendations
