"""In-memory full-text index with prefix and fuzzy term matching.

Documents are plain mappings. Indexed fields are tokenized into an inverted
index (``term -> field -> document id -> term frequency``); stored fields are
kept verbatim and returned with each match. Scoring is BM25+ per field,
multiplied by the field boost and by how closely the indexed term matched the
query term (exact, prefix or within a bounded edit distance).
"""

from __future__ import annotations

import math
import re
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from rapidfuzz.distance import Levenshtein

FORMAT = "swiftdocs-index"
FORMAT_VERSION = 1

MAX_FUZZY_DISTANCE = 6
EXACT_WEIGHT = 1.0
PREFIX_WEIGHT = 0.375
FUZZY_WEIGHT = 0.45

BM25_K = 1.2
BM25_B = 0.7
BM25_D = 0.5

_TOKEN_RE = re.compile(r"[^\W_]+")


def tokenize(text: str) -> List[str]:
    """Lower-cased runs of letters and digits."""
    return _TOKEN_RE.findall(text.lower())


class DuplicateDocumentError(ValueError):
    """Raised when a document id is added twice to the same index."""


@dataclass(slots=True)
class IndexMatch:
    id: str
    score: float
    document: Dict[str, Any]
    terms: List[str] = field(default_factory=list)


class SearchIndex:
    """Inverted index over documents keyed by ``id_field``."""

    def __init__(
        self,
        fields: Sequence[str],
        *,
        store_fields: Sequence[str] | None = None,
        boost: Mapping[str, float] | None = None,
        fuzzy: float = 0.1,
        prefix: bool = True,
        id_field: str = "record_id",
    ) -> None:
        if not fields:
            raise ValueError("At least one indexed field is required")
        self.fields = tuple(fields)
        self.store_fields = tuple(store_fields) if store_fields else (id_field,)
        self.boost = dict(boost or {})
        self.fuzzy = fuzzy
        self.prefix = prefix
        self.id_field = id_field
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._postings: Dict[str, Dict[str, Dict[str, int]]] = {}
        self._field_lengths: Dict[str, Dict[str, int]] = {}
        self._vocabulary: List[str] | None = None
        self._average_lengths: Dict[str, float] | None = None

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    @property
    def document_count(self) -> int:
        return len(self._documents)

    def ids(self) -> List[str]:
        return list(self._documents)

    def get(self, doc_id: str) -> Dict[str, Any] | None:
        document = self._documents.get(doc_id)
        return dict(document) if document is not None else None

    def add(self, document: Mapping[str, Any]) -> None:
        doc_id = document.get(self.id_field)
        if not doc_id:
            raise ValueError(f"Document is missing its '{self.id_field}' field")
        doc_id = str(doc_id)
        if doc_id in self._documents:
            raise DuplicateDocumentError(f"Duplicate document id: {doc_id}")

        lengths: Dict[str, int] = {}
        for name in self.fields:
            tokens = _field_tokens(document.get(name))
            if not tokens:
                continue
            lengths[name] = len(tokens)
            for token in tokens:
                posting = self._postings.setdefault(token, {}).setdefault(name, {})
                posting[doc_id] = posting.get(doc_id, 0) + 1

        self._documents[doc_id] = {name: document.get(name) for name in self.store_fields}
        self._documents[doc_id][self.id_field] = doc_id
        self._field_lengths[doc_id] = lengths
        self._vocabulary = None
        self._average_lengths = None

    def add_all(self, documents: Iterable[Mapping[str, Any]]) -> None:
        for document in documents:
            self.add(document)

    # Matching

    @property
    def vocabulary(self) -> List[str]:
        if self._vocabulary is None:
            self._vocabulary = sorted(self._postings)
        return self._vocabulary

    def max_distance(self, token: str, fuzzy: float | None = None) -> int:
        fuzzy = self.fuzzy if fuzzy is None else fuzzy
        if fuzzy <= 0:
            return 0
        if fuzzy >= 1:
            return int(fuzzy)
        return min(MAX_FUZZY_DISTANCE, int(len(token) * fuzzy + 0.5))

    def expand(self, token: str, *, fuzzy: float | None = None, prefix: bool | None = None) -> Dict[str, float]:
        """Map indexed terms matching ``token`` to their match weight."""
        prefix = self.prefix if prefix is None else prefix
        vocabulary = self.vocabulary
        matches: Dict[str, float] = {}
        if token in self._postings:
            matches[token] = EXACT_WEIGHT

        if prefix:
            position = bisect_left(vocabulary, token)
            while position < len(vocabulary) and vocabulary[position].startswith(token):
                term = vocabulary[position]
                if term != token:
                    extra = len(term) - len(token)
                    weight = PREFIX_WEIGHT * len(token) / (len(token) + 0.3 * extra)
                    matches[term] = max(matches.get(term, 0.0), weight)
                position += 1

        distance = self.max_distance(token, fuzzy)
        if distance > 0:
            for term in vocabulary:
                if term == token or abs(len(term) - len(token)) > distance:
                    continue
                edits = Levenshtein.distance(token, term, score_cutoff=distance)
                if edits <= distance:
                    weight = FUZZY_WEIGHT * len(token) / (len(token) + edits)
                    matches[term] = max(matches.get(term, 0.0), weight)
        return matches

    def _average_length(self, name: str) -> float:
        if self._average_lengths is None:
            totals: Dict[str, int] = {}
            for lengths in self._field_lengths.values():
                for field_name, length in lengths.items():
                    totals[field_name] = totals.get(field_name, 0) + length
            count = max(len(self._documents), 1)
            self._average_lengths = {key: value / count for key, value in totals.items()}
        return self._average_lengths.get(name, 1.0) or 1.0

    def _bm25(self, tf: int, df: int, length: int, average: float) -> float:
        total = len(self._documents)
        idf = math.log(1 + (total - df + 0.5) / (df + 0.5))
        norm = BM25_K * (1 - BM25_B + BM25_B * length / average)
        return idf * (BM25_D + tf * (BM25_K + 1) / (tf + norm))

    def search(
        self,
        query: str,
        *,
        fuzzy: float | None = None,
        prefix: bool | None = None,
        boost: Mapping[str, float] | None = None,
    ) -> List[IndexMatch]:
        """Return every document matching any query token, best first.

        Ties are broken by document id so results are deterministic.
        """
        tokens = list(dict.fromkeys(tokenize(query or "")))
        if not tokens or not self._documents:
            return []
        boosts = self.boost if boost is None else dict(boost)

        scores: Dict[str, float] = {}
        matched_terms: Dict[str, List[str]] = {}
        for token in tokens:
            for term, weight in self.expand(token, fuzzy=fuzzy, prefix=prefix).items():
                for name, posting in self._postings[term].items():
                    field_boost = boosts.get(name, 1.0)
                    average = self._average_length(name)
                    for doc_id, tf in posting.items():
                        length = self._field_lengths[doc_id].get(name, 1)
                        score = weight * field_boost * self._bm25(tf, len(posting), length, average)
                        scores[doc_id] = scores.get(doc_id, 0.0) + score
                        terms = matched_terms.setdefault(doc_id, [])
                        if term not in terms:
                            terms.append(term)

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        return [
            IndexMatch(
                id=doc_id,
                score=score,
                document=dict(self._documents[doc_id]),
                terms=matched_terms[doc_id],
            )
            for doc_id, score in ranked
        ]

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": FORMAT,
            "version": FORMAT_VERSION,
            "id_field": self.id_field,
            "fields": list(self.fields),
            "store_fields": list(self.store_fields),
            "boost": dict(self.boost),
            "fuzzy": self.fuzzy,
            "prefix": self.prefix,
            "document_count": self.document_count,
            "documents": list(self._documents.values()),
            "field_lengths": self._field_lengths,
            "postings": self._postings,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchIndex":
        """Rebuild an index from :meth:`to_dict` output without re-tokenizing."""
        if data.get("format") != FORMAT or data.get("version") != FORMAT_VERSION:
            raise ValueError("Unsupported index format")
        index = cls(
            data["fields"],
            store_fields=data["store_fields"],
            boost=data.get("boost"),
            fuzzy=float(data.get("fuzzy", 0.1)),
            prefix=bool(data.get("prefix", True)),
            id_field=data.get("id_field", "record_id"),
        )
        for document in data["documents"]:
            index._documents[str(document[index.id_field])] = dict(document)
        index._field_lengths = {
            str(doc_id): {str(name): int(length) for name, length in lengths.items()}
            for doc_id, lengths in data["field_lengths"].items()
        }
        index._postings = {
            str(term): {
                str(name): {str(doc_id): int(tf) for doc_id, tf in posting.items()}
                for name, posting in by_field.items()
            }
            for term, by_field in data["postings"].items()
        }
        if set(index._field_lengths) != set(index._documents):
            raise ValueError("Index field lengths do not match its documents")
        return index


def _field_tokens(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return tokenize(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        tokens: List[str] = []
        for item in value:
            tokens.extend(_field_tokens(item))
        return tokens
    return tokenize(str(value))
