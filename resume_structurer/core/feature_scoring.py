"""
Weighted feature scoring over text-item candidates.

A field (job title, school, email, ...) is described by a tuple of Features.
Every candidate fragment is scored by summing the weights of the features it
matches; the highest positive score wins and ties go to the earliest
(line, item) position so results are order-stable.

Weights are policy, not law: they live in immutable tables next to the
extractor and can be tuned per field.
"""

from dataclasses import dataclass
from typing import Callable, Collection, List, Optional, Sequence, Tuple

from resume_structurer.core.schemas import Line, TextItem


@dataclass(frozen=True)
class Candidate:
    """One text fragment together with where it sits in its subsection."""
    item: TextItem
    line: Line
    line_index: int
    item_index: int

    @property
    def text(self) -> str:
        return self.item.text

    @property
    def key(self) -> Tuple[int, int]:
        return (self.line_index, self.item_index)


@dataclass(frozen=True)
class Feature:
    """
    A weighted signal. Either `test` (a predicate on the candidate) or `extract`
    (returns the matched sub-text or None) must be given. When a winning
    candidate matched an extracting feature, the field takes the extracted text
    instead of the whole fragment.
    """
    weight: int
    test: Optional[Callable[[Candidate], bool]] = None
    extract: Optional[Callable[[str], Optional[str]]] = None

    def evaluate(self, candidate: Candidate) -> Tuple[bool, Optional[str]]:
        if self.extract is not None:
            value = self.extract(candidate.text)
            return value is not None, value
        return bool(self.test(candidate)), None


FeatureSet = Tuple[Feature, ...]


@dataclass(frozen=True)
class FieldMatch:
    text: str
    candidate: Candidate
    score: int


def score_candidate(candidate: Candidate, features: FeatureSet) -> Tuple[int, Optional[str]]:
    score = 0
    extracted: Optional[str] = None
    for feature in features:
        matched, value = feature.evaluate(candidate)
        if not matched:
            continue
        score += feature.weight
        if value is not None and feature.weight > 0 and extracted is None:
            extracted = value
    return score, extracted


def pick_best(
    candidates: Sequence[Candidate],
    features: FeatureSet,
    exclude: Collection[Tuple[int, int]] = (),
) -> Optional[FieldMatch]:
    """Highest positive score wins; on a tie the earliest candidate wins."""
    best: Optional[FieldMatch] = None
    for candidate in sorted(candidates, key=lambda c: c.key):
        if candidate.key in exclude:
            continue
        score, extracted = score_candidate(candidate, features)
        if score <= 0:
            continue
        if best is None or score > best.score:
            best = FieldMatch(text=(extracted or candidate.text).strip(), candidate=candidate, score=score)
    return best


def candidates_from_lines(lines: Sequence[Line]) -> List[Candidate]:
    return [
        Candidate(item=item, line=line, line_index=li, item_index=ii)
        for li, line in enumerate(lines)
        for ii, item in enumerate(line.items)
    ]


# ===== Reusable predicates =====

def is_bold(c: Candidate) -> bool:
    return c.item.is_bold


def is_first_line(c: Candidate) -> bool:
    return c.line_index == 0


def is_first_item(c: Candidate) -> bool:
    return c.item_index == 0


def is_leading_item(c: Candidate) -> bool:
    """Leftmost fragment of a line with several fragments."""
    return len(c.line.items) > 1 and c.item_index == 0


def is_right_aligned(c: Candidate) -> bool:
    """Rightmost fragment of a line with several fragments."""
    return len(c.line.items) > 1 and c.item_index == len(c.line.items) - 1


def follows_word(word: str) -> Callable[[Candidate], bool]:
    """Fragment separated from the one before it by `word` ("Engineer at Acme")."""
    return lambda c: c.item_index > 0 and c.item.separator.strip().lower() == word


def precedes_word(word: str) -> Callable[[Candidate], bool]:
    def check(c: Candidate) -> bool:
        nxt = c.item_index + 1
        return nxt < len(c.line.items) and c.line.items[nxt].separator.strip().lower() == word
    return check


def text_matches(pattern) -> Callable[[Candidate], bool]:
    return lambda c: bool(pattern.search(c.text))


def text_check(fn: Callable[[str], bool]) -> Callable[[Candidate], bool]:
    return lambda c: fn(c.text)
