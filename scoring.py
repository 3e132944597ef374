import math
from typing import Mapping


RATING_WEIGHT = 60
PROBLEM_WEIGHT = 0.45
RATING_BASIS = 3000
DIFFICULTY_WEIGHTS = {"Easy": 1.0, "Medium": 2.5, "Hard": 4.0}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def problem_score(solved: Mapping[str, int]) -> float:
    return sum(weight * solved.get(difficulty, 0) for difficulty, weight in DIFFICULTY_WEIGHTS.items())


def custom_score(rating: float | None, solved: Mapping[str, int]) -> int:
    normalized_rating = (rating or 0) / RATING_BASIS
    return round_half_up(RATING_WEIGHT * normalized_rating + PROBLEM_WEIGHT * problem_score(solved))
