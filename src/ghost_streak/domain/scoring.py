"""Domain models for session scoring."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoreSummary:
    """Breakdown of a finished session's score."""

    final_score: int
    successful_rounds: int
    total_rounds: int
    goal_reached: bool
    restriction_score: int
