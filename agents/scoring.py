"""
Courier suitability scoring.

The score is a weighted sum of four sub-scores (distance, rating, experience,
workload). Higher is better. Candidates are expected to have passed the
eligibility filter already, which keeps the distance and rating sub-scores in
[0, 1].
"""

import math
from dataclasses import dataclass

from config.config import AssignmentConfig
from models.delivery import Courier
from models.errors import MalformedInputError

DEFAULT_CONFIG = AssignmentConfig()


@dataclass(frozen=True)
class ScoreBreakdown:
    distance: float
    rating: float
    experience: float
    workload: float
    total: float


def score_breakdown(
    courier: Courier,
    distance: float,
    max_deliveries: int,
    config: AssignmentConfig = DEFAULT_CONFIG,
) -> ScoreBreakdown:
    """Compute each sub-score and the weighted total for one candidate."""
    if not math.isfinite(distance) or distance < 0:
        raise MalformedInputError(f"Distance must be a non-negative number, got {distance!r}")
    if max_deliveries < 0 or courier.total_deliveries > max_deliveries:
        raise MalformedInputError(
            f"max_deliveries ({max_deliveries}) must cover courier {courier.courier_id} "
            f"({courier.total_deliveries} deliveries)"
        )

    distance_score = 1 - (distance / config.max_assignment_distance)
    rating_score = (courier.rating - config.min_rating) / (config.max_rating - config.min_rating)
    # Nobody has delivered anything yet: experience cannot tell candidates apart
    experience_score = courier.total_deliveries / max_deliveries if max_deliveries > 0 else 0.0
    workload_score = 0.0 if courier.is_busy else 1.0

    total = math.fsum(
        (
            config.weight_distance * distance_score,
            config.weight_rating * rating_score,
            config.weight_experience * experience_score,
            config.weight_workload * workload_score,
        )
    )
    return ScoreBreakdown(
        distance=distance_score,
        rating=rating_score,
        experience=experience_score,
        workload=workload_score,
        total=total,
    )


def score_courier(
    courier: Courier,
    distance: float,
    max_deliveries: int,
    config: AssignmentConfig = DEFAULT_CONFIG,
) -> float:
    return score_breakdown(courier, distance, max_deliveries, config).total
