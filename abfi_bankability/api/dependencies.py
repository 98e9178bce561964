"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache

from fastapi import Request
from abfi_bankability.config import settings
from abfi_bankability.domain.policy import DEFAULT_SCORING_POLICY, ScoringPolicy, load_policy


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


@lru_cache(maxsize=1)
def get_scoring_policy() -> ScoringPolicy:
    """Provide the configured scoring policy, loaded once per process"""
    if settings.scoring_policy_path:
        return load_policy(settings.scoring_policy_path)
    return DEFAULT_SCORING_POLICY
