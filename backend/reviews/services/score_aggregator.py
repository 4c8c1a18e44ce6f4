"""Rubric score aggregation.

Reviewers score rubric items on a 1-5 scale. Items are keyed
``"[Label] Item"``; each label belongs to one of four categories. The total is
the percentage of the maximum possible score over every recognised item.
"""
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from common.errors import InvalidInput

MIN_SCORE = 1
MAX_SCORE = 5

_KEY_RE = re.compile(r'^\s*\[([^\]]+)\]\s*(.+?)\s*$')


class Category(str, Enum):
    PROFESSIONALISM = 'professionalism'
    RESPONSIBILITIES = 'responsibilities'
    DEVELOPMENT = 'development'
    ENGAGEMENT = 'engagement'


# Leadership and Service are the HOD rubric's names for the same groups.
LABEL_CATEGORIES = {
    'professionalism': Category.PROFESSIONALISM,
    'responsibilities': Category.RESPONSIBILITIES,
    'leadership': Category.RESPONSIBILITIES,
    'development': Category.DEVELOPMENT,
    'engagement': Category.ENGAGEMENT,
    'service': Category.ENGAGEMENT,
}


@dataclass(frozen=True)
class RubricItem:
    label: str
    name: str
    score: float

    @property
    def key(self) -> str:
        return f'[{self.label}] {self.name}'

    @property
    def category(self) -> Category:
        return LABEL_CATEGORIES[self.label.lower()]


@dataclass(frozen=True)
class RubricScoreSet:
    items: Tuple[RubricItem, ...] = ()

    @classmethod
    def from_flat(cls, raw: Optional[Mapping[str, Any]], strict: bool = True) -> 'RubricScoreSet':
        """Build from a flat ``{"[Label] Item": score}`` map.

        With ``strict`` an unknown category or a score outside 1..5 raises
        InvalidInput; otherwise such entries are dropped.
        """
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            if strict:
                raise InvalidInput('InvalidScores', 'Rubric scores must be an object')
            return cls()

        items = []
        for key, value in raw.items():
            match = _KEY_RE.match(str(key))
            label = match.group(1).strip() if match else None
            if label is None or label.lower() not in LABEL_CATEGORIES:
                if strict:
                    raise InvalidInput('UnknownCategory', f'Unknown rubric category in {key!r}', {'key': key})
                continue

            if isinstance(value, bool) or not isinstance(value, (int, float)):
                if strict:
                    raise InvalidInput('InvalidScore', f'Score for {key!r} must be a number', {'key': key})
                continue
            if strict and not (MIN_SCORE <= value <= MAX_SCORE):
                raise InvalidInput(
                    'ScoreOutOfRange', f'Score for {key!r} must be between {MIN_SCORE} and {MAX_SCORE}', {'key': key},
                )
            items.append(RubricItem(label=label, name=match.group(2), score=value))
        return cls(tuple(items))

    def to_flat(self) -> Dict[str, float]:
        return {item.key: item.score for item in self.items}

    def __len__(self):
        return len(self.items)


@dataclass(frozen=True)
class AggregateResult:
    category_subtotals: Dict[str, float] = field(default_factory=dict)
    total_score: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return {'categorySubtotals': dict(self.category_subtotals), 'totalScore': self.total_score}


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def aggregate(raw_scores) -> AggregateResult:
    score_set = raw_scores if isinstance(raw_scores, RubricScoreSet) else RubricScoreSet.from_flat(raw_scores, strict=False)

    subtotals = {category.value: 0 for category in Category}
    total = Decimal(0)
    for item in score_set.items:
        subtotals[item.category.value] += item.score
        total += Decimal(str(item.score))

    if not score_set.items:
        return AggregateResult(subtotals, None)
    maximum = Decimal(len(score_set.items) * MAX_SCORE)
    return AggregateResult(subtotals, round_half_up(total / maximum * 100))


def validate_rubric(raw) -> RubricScoreSet:
    return RubricScoreSet.from_flat(raw, strict=True)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_scores_payload(rubric, total_override=None) -> Dict[str, Any]:
    """Validate a rubric map and return the stored ``scores`` document.

    ``rubric`` may also be a stored document (``{"rubric": ..., "totalScore": ...}``);
    its ``totalScore`` is kept unless ``total_override`` is given.
    """
    stored_total = None
    if isinstance(rubric, Mapping) and 'rubric' in rubric:
        stored_total = rubric.get('totalScore')
        rubric = rubric.get('rubric')

    score_set = validate_rubric(rubric or {})
    result = aggregate(score_set)

    total = total_override if total_override is not None else stored_total
    if total is not None and not _is_number(total):
        raise InvalidInput('InvalidScore', 'totalScore must be a number')
    if total is not None and not (0 <= total <= 100):
        raise InvalidInput('ScoreOutOfRange', 'totalScore must be between 0 and 100')

    return {
        'rubric': score_set.to_flat(),
        'categorySubtotals': result.category_subtotals,
        'totalScore': total if total is not None else result.total_score,
    }


def resolve_total_score(scores) -> Optional[float]:
    """A stored ``totalScore`` wins; otherwise the rubric is aggregated."""
    if not isinstance(scores, Mapping):
        return None
    stored = scores.get('totalScore')
    if _is_number(stored):
        return stored
    rubric = scores.get('rubric', scores)
    return aggregate(rubric).total_score


def display_score(score, status: Optional[str]):
    if status == 'PROMOTED':
        return 100
    return score
