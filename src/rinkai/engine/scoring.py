from __future__ import annotations

from dataclasses import dataclass

from .state import ResourceState

# Accounting and satisfaction below this level cost one withdrawal per point.
WITHDRAWAL_THRESHOLD = 15


@dataclass(frozen=True)
class ScoreRecord:
    points: int
    withdrawal: int
    mobilization: int
    enrollment_diff: int
    experience: int
    enrollment: int
    satisfaction: int
    accounting: int

    def to_dict(self) -> dict[str, int]:
        return {
            "points": self.points,
            "withdrawal": self.withdrawal,
            "mobilization": self.mobilization,
            "enrollmentDiff": self.enrollment_diff,
            "experience": self.experience,
            "enrollment": self.enrollment,
            "satisfaction": self.satisfaction,
            "accounting": self.accounting,
        }


def withdrawal_count(state: ResourceState) -> int:
    return max(WITHDRAWAL_THRESHOLD - state.accounting, 0) + max(
        WITHDRAWAL_THRESHOLD - state.satisfaction, 0
    )


def score(state: ResourceState) -> ScoreRecord:
    withdrawal = withdrawal_count(state)
    mobilization = state.experience
    enrollment_diff = state.enrollment - withdrawal

    points = 0

    if withdrawal >= 4:
        points -= 3
    elif withdrawal <= 1:
        points += 1

    if mobilization >= 12:
        points += 2
    elif mobilization >= 10:
        points += 1

    if enrollment_diff >= 12:
        points += 5
    elif enrollment_diff >= 10:
        points += 4
    elif enrollment_diff >= 8:
        points += 3

    return ScoreRecord(
        points=points,
        withdrawal=withdrawal,
        mobilization=mobilization,
        enrollment_diff=enrollment_diff,
        experience=state.experience,
        enrollment=state.enrollment,
        satisfaction=state.satisfaction,
        accounting=state.accounting,
    )
