"""
Proficiency interpretation of competency percentages.

Maps a 0-100 percentage onto a five-level proficiency scale with localized
labels.
"""

from enum import Enum
from typing import Dict, Iterable, Tuple

from assessment.core.precision import meets_threshold
from assessment.core.scoring._types import CompetencyScore

DEFAULT_LOCALE = "en"


class ProficiencyLevel(str, Enum):
    EXPERT = "EXPERT"
    ADVANCED = "ADVANCED"
    PROFICIENT = "PROFICIENT"
    DEVELOPING = "DEVELOPING"
    BEGINNING = "BEGINNING"


# Lower bound (inclusive) per level, highest first
_LEVEL_BOUNDS: Tuple[Tuple[float, ProficiencyLevel], ...] = (
    (85.0, ProficiencyLevel.EXPERT),
    (70.0, ProficiencyLevel.ADVANCED),
    (50.0, ProficiencyLevel.PROFICIENT),
    (30.0, ProficiencyLevel.DEVELOPING),
)

_LABELS: Dict[str, Dict[ProficiencyLevel, str]] = {
    "en": {
        ProficiencyLevel.EXPERT: "Expert",
        ProficiencyLevel.ADVANCED: "Advanced",
        ProficiencyLevel.PROFICIENT: "Proficient",
        ProficiencyLevel.DEVELOPING: "Developing",
        ProficiencyLevel.BEGINNING: "Beginning",
    },
    "ru": {
        ProficiencyLevel.EXPERT: "Эксперт",
        ProficiencyLevel.ADVANCED: "Опытный",
        ProficiencyLevel.PROFICIENT: "Компетентный",
        ProficiencyLevel.DEVELOPING: "Развивающийся",
        ProficiencyLevel.BEGINNING: "Начальный",
    },
}


class ScoreInterpreter:
    """Percentage -> proficiency level and label."""

    def __init__(self, locale: str = DEFAULT_LOCALE):
        self.locale = locale if locale in _LABELS else DEFAULT_LOCALE

    @staticmethod
    def level_for(percentage: float) -> ProficiencyLevel:
        for bound, level in _LEVEL_BOUNDS:
            if meets_threshold(percentage, bound):
                return level
        return ProficiencyLevel.BEGINNING

    def label_for(self, level: ProficiencyLevel) -> str:
        return _LABELS[self.locale][level]

    def interpret(self, percentage: float) -> Tuple[ProficiencyLevel, str]:
        level = self.level_for(percentage)
        return level, self.label_for(level)

    def enrich(self, scores: Iterable[CompetencyScore]) -> None:
        for score in scores:
            level, label = self.interpret(score.percentage)
            score.proficiency_level = level.value
            score.proficiency_label = label
