"""
Core module: configuration, the consistency-scoring engine and shared utilities.

Scoring, aggregation and recommendation functions are pure and importable
without touching the store or the web layer:
    from app.core.scoring import score_responses
    from app.core.aggregation import aggregate_scores
    from app.core.recommendations import generate_recommendations
"""
from .config import settings

__all__ = ["settings"]
