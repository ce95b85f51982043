"""
Candidate sourcing: ask the real-time search model for titles that fit the
user's taste and the request constraints.
"""

import asyncio
import logging
import re
from typing import List

from cinemate.clients.chat import ChatClient, ChatError
from cinemate.core.errors import UpstreamUnavailable
from cinemate.core.pipeline.models import CandidateItem, CandidateSet, FilterSpec, TasteProfile
from cinemate.core.pipeline.prompts import SEARCH_SYSTEM_PROMPT, build_search_prompt

logger = logging.getLogger(__name__)

# "1. **Dune: Part Two** (2024) - ..." and similar list lines
_CANDIDATE_LINE = re.compile(
    r"^\s*(?:[-*•]|\d+[.)])?\s*[*_\"]*(?P<title>[^*_\"\n(]{1,150}?)[*_\"]*\s*"
    r"\((?P<year>(?:18|19|20)\d{2})\)[*_]*\s*(?:[-:–—]\s*)?(?P<rest>.*)$"
)


def extract_candidates(text: str) -> List[CandidateItem]:
    """Pick "Title (Year)" list entries out of free text, first mention wins."""
    items = []
    seen = set()
    for line in text.splitlines():
        match = _CANDIDATE_LINE.match(line)
        if not match:
            continue
        title = match.group("title").strip(" -:")
        year = int(match.group("year"))
        key = (title.casefold(), year)
        if not title or key in seen:
            continue
        seen.add(key)
        items.append(CandidateItem(title=title, year=year, attributes=match.group("rest").strip()))
    return items


class CandidateSourcer:
    """One search-model call per request; failures are never retried."""

    def __init__(self, client: ChatClient, timeout: float = 30.0):
        self.client = client
        self.timeout = timeout

    async def source(self, profile: TasteProfile, filters: FilterSpec) -> CandidateSet:
        """
        Returns:
            CandidateSet with the model's raw answer

        Raises:
            UpstreamUnavailable: On errors, timeouts or an empty answer
        """
        prompt = build_search_prompt(profile, filters)
        logger.debug("Search prompt:\n%s", prompt)
        messages = [
            {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

        try:
            result = await asyncio.wait_for(self.client.complete(messages), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Candidate search timed out after %.0fs", self.timeout)
            raise UpstreamUnavailable("search", f"timed out after {self.timeout:g}s")
        except ChatError as e:
            raise UpstreamUnavailable("search", str(e)) from e

        text = result.content.strip()
        if not text:
            raise UpstreamUnavailable("search", "empty response")

        candidates = CandidateSet(raw_text=text, items=extract_candidates(text))
        logger.info(
            "Search returned %d characters, %d recognizable candidates",
            len(text), len(candidates.items),
        )
        return candidates
