"""
Bulk recommendation pipeline orchestrator.

Runs gate → candidate sourcing → schema enforcement → persistence in
order; the first failing stage ends the run.
"""

import logging
import time
from datetime import date
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cinemate.core.pipeline.gate import open_request
from cinemate.core.pipeline.models import BatchSummary
from cinemate.core.pipeline.persistence import RecommendationStore
from cinemate.core.pipeline.profile import load_taste_profile
from cinemate.core.pipeline.schema import SchemaEnforcer
from cinemate.core.pipeline.sourcing import CandidateSourcer
from cinemate.core.pipeline.status import InFlightRegistry
from cinemate.database.models import User

logger = logging.getLogger(__name__)


class BulkRecommendationPipeline:
    """
    High-level entry point for generating a recommendation batch.

    Usage:
        pipeline = BulkRecommendationPipeline(sourcer, enforcer, store)
        summary = await pipeline.run(session, user, {"count": 10, "genres": ["Drama"]})
    """

    def __init__(
        self,
        sourcer: CandidateSourcer,
        enforcer: SchemaEnforcer,
        store: RecommendationStore,
        registry: Optional[InFlightRegistry] = None,
        history_limit: int = 100,
    ):
        """
        Args:
            sourcer: Candidate sourcing stage
            enforcer: Schema enforcement stage
            store: Persistence stage
            registry: Per-user in-flight markers (a private one when None)
            history_limit: Number of most recent ratings fed to the prompts
        """
        self.sourcer = sourcer
        self.enforcer = enforcer
        self.store = store
        self.registry = registry or InFlightRegistry()
        self.history_limit = history_limit

    async def run(
        self,
        session: Session,
        user: Optional[User],
        raw_filters: Optional[Mapping[str, Any]] = None,
        today: Optional[date] = None,
    ) -> BatchSummary:
        """
        Generate and store one recommendation batch for a user.

        Raises:
            Unauthenticated, InsufficientData: Before any external call
            AlreadyInProgress: If the user already has a run in flight
            UpstreamUnavailable, SchemaViolation: From the AI stages
        """
        gate = await run_in_threadpool(open_request, session, user, raw_filters, today)
        user_id = user.user_id

        with self.registry.hold(user_id):
            started = time.perf_counter()
            logger.info("Starting bulk recommendation pipeline for user %s", user_id)

            profile = await run_in_threadpool(
                load_taste_profile, session, user_id, self.history_limit
            )
            logger.info(
                "Taste profile: %d loved, %d enjoyed, %d disliked",
                len(profile.loved), len(profile.enjoyed), len(profile.disliked),
            )

            stage_started = time.perf_counter()
            candidates = await self.sourcer.source(profile, gate.filters)
            logger.info("Candidate sourcing took %.1fs", time.perf_counter() - stage_started)

            stage_started = time.perf_counter()
            ranked = await self.enforcer.enforce(candidates, profile, gate.filters)
            logger.info(
                "Schema enforcement took %.1fs, %d recommendations",
                time.perf_counter() - stage_started, len(ranked),
            )

            summary = await self.store.persist(session, user_id, ranked)
            logger.info(
                "Pipeline for user %s finished in %.1fs: %d stored",
                user_id, time.perf_counter() - started, summary.stored,
            )
        return summary
