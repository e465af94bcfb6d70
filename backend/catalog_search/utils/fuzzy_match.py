"""
Fuzzy matching — weighted, typo-tolerant field matching over product records.

Built once per collection:
- every searchable field is tokenized (lowercase word tokens, length >= 2)
- an inverted index maps each token to the records containing it, per field
- the vocabulary of distinct tokens is kept for per-query typo expansion

Per query, each query token is compared against the vocabulary. Distance is
0.0 when the query token is a substring of the vocabulary token, otherwise
1 - difflib ratio. Tokens further than MAX_TOKEN_DISTANCE are misses and
count as 1.0. A field matches when it contains the whole query phrase or
when the mean best distance of the query tokens is within the threshold, so
only fields with few enough misses are ever scored.
Record score is the product of (field distance ** normalized weight) over
matching fields: lower is better.
Version: 1.0.0
"""
import re
from collections import Counter, defaultdict
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from catalog_search.core.constants.search import (
    DEFAULT_MATCH_THRESHOLD,
    FIELD_WEIGHTS,
    MAX_TOKEN_DISTANCE,
    MIN_MATCH_CHAR_LENGTH,
    PERFECT_MATCH_SCORE,
)
from catalog_search.schemas.products import ProductRecord

_TOKEN = re.compile(r"\w+")


@dataclass(frozen=True)
class FuzzyMatch:
    """Position of a matching record in the indexed collection and its score."""
    position: int
    score: float


def field_text(record: ProductRecord, field: str) -> str:
    if field == "tags":
        return " ".join(record.tags)
    return getattr(record, field) or ""


class FuzzyIndex:
    """Immutable approximate-match structure over one record collection."""

    def __init__(
        self,
        records: Sequence[ProductRecord],
        weights: Mapping[str, float] = FIELD_WEIGHTS,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        min_match_char_length: int = MIN_MATCH_CHAR_LENGTH,
    ) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {threshold}")
        total_weight = sum(weights.values())
        if total_weight <= 0:
            raise ValueError("field weights must sum to a positive value")

        self._threshold = threshold
        self._min_length = min_match_char_length
        self._weights: Tuple[Tuple[str, float], ...] = tuple(
            (field, weight / total_weight) for field, weight in weights.items()
        )

        documents: List[Tuple[Tuple[str, Tuple[str, ...]], ...]] = []
        postings: Dict[str, Dict[str, List[int]]] = {field: defaultdict(list) for field, _ in self._weights}
        vocabulary: Set[str] = set()

        for position, record in enumerate(records):
            fields = []
            for field, _ in self._weights:
                tokens = self.tokenize(field_text(record, field))
                fields.append((" ".join(tokens), tokens))
                for token in set(tokens):
                    postings[field][token].append(position)
                vocabulary.update(tokens)
            documents.append(tuple(fields))

        self._documents = tuple(documents)
        self._postings = {field: dict(index) for field, index in postings.items()}
        self._vocabulary = tuple(sorted(vocabulary))

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def threshold(self) -> float:
        return self._threshold

    def tokenize(self, text: str) -> Tuple[str, ...]:
        return tuple(token for token in _TOKEN.findall(text.lower()) if len(token) >= self._min_length)

    def search(self, query: str) -> List[FuzzyMatch]:
        """Return matching records ordered best first (ties keep collection order)."""
        query_tokens = self.tokenize(query)
        if not query_tokens or not self._documents:
            return []

        phrase = " ".join(query_tokens)
        # A token further than this from every field token pushes the mean over the threshold
        bound = min(MAX_TOKEN_DISTANCE, self._threshold * len(query_tokens))
        near = {token: self._near_tokens(token, bound) for token in set(query_tokens)}
        # Each miss adds 1.0 to the distance sum, which may not exceed threshold * n
        required = len(query_tokens) - int(self._threshold * len(query_tokens) + 1e-9)

        scores: Dict[int, float] = {}
        for field_number, (field, weight) in enumerate(self._weights):
            for position in self._candidates(field, query_tokens, near, required):
                text, tokens = self._documents[position][field_number]
                distance = self._field_distance(text, tokens, query_tokens, phrase, near)
                if distance is None:
                    continue
                scores[position] = scores.get(position, 1.0) * max(distance, PERFECT_MATCH_SCORE) ** weight

        matches = [FuzzyMatch(position=position, score=score) for position, score in scores.items()]
        matches.sort(key=lambda match: (match.score, match.position))
        return matches

    def _near_tokens(self, query_token: str, bound: float) -> Dict[str, float]:
        near: Dict[str, float] = {}
        for token in self._vocabulary:
            distance = token_distance(query_token, token, bound)
            if distance < 1.0 and distance <= bound:
                near[token] = distance
        return near

    def _candidates(
        self,
        field: str,
        query_tokens: Tuple[str, ...],
        near: Dict[str, Dict[str, float]],
        required: int,
    ) -> Set[int]:
        """Records whose field has a near token for at least `required` query tokens."""
        if required <= 0:
            return set(range(len(self._documents)))
        index = self._postings[field]
        hits: Dict[int, int] = defaultdict(int)
        for query_token, count in Counter(query_tokens).items():
            positions: Set[int] = set()
            for token in near[query_token]:
                positions.update(index.get(token, ()))
            for position in positions:
                hits[position] += count
        return {position for position, count in hits.items() if count >= required}

    def _field_distance(
        self,
        text: str,
        tokens: Tuple[str, ...],
        query_tokens: Tuple[str, ...],
        phrase: str,
        near: Dict[str, Dict[str, float]],
    ) -> Optional[float]:
        if phrase in text:
            return 0.0
        total = 0.0
        for query_token in query_tokens:
            near_token = near[query_token]
            total += min((near_token[token] for token in tokens if token in near_token), default=1.0)
        mean = total / len(query_tokens)
        return mean if mean <= self._threshold else None


def token_distance(query_token: str, token: str, bound: float = 1.0) -> float:
    """
    Edit-style distance between two tokens in [0, 1].

    Anything provably further than bound is reported as 1.0 without running
    the full comparison.
    """
    if query_token in token:
        return 0.0
    matcher = SequenceMatcher(None, query_token, token, autojunk=False)
    if 1.0 - matcher.real_quick_ratio() > bound or 1.0 - matcher.quick_ratio() > bound:
        return 1.0
    distance = 1.0 - matcher.ratio()
    return distance if distance <= bound else 1.0
