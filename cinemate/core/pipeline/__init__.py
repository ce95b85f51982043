"""
Bulk recommendation pipeline.

This package contains:
- Request gate (eligibility and filter normalization)
- Candidate sourcing via a real-time search model
- Schema enforcement via a JSON-mode generation model
- Persistence with de-duplication and per-item outcomes
- Status reporting and the pipeline orchestrator
"""

from cinemate.core.pipeline.gate import open_request, normalize_filters, MIN_RATINGS
from cinemate.core.pipeline.models import FilterSpec, BatchSummary, RankedRecommendation
from cinemate.core.pipeline.persistence import RecommendationStore, TitleResolver
from cinemate.core.pipeline.runner import BulkRecommendationPipeline
from cinemate.core.pipeline.schema import SchemaEnforcer
from cinemate.core.pipeline.sourcing import CandidateSourcer
from cinemate.core.pipeline.status import InFlightRegistry, recommendation_status

__all__ = [
    'open_request',
    'normalize_filters',
    'MIN_RATINGS',
    'FilterSpec',
    'BatchSummary',
    'RankedRecommendation',
    'RecommendationStore',
    'TitleResolver',
    'BulkRecommendationPipeline',
    'SchemaEnforcer',
    'CandidateSourcer',
    'InFlightRegistry',
    'recommendation_status',
]
