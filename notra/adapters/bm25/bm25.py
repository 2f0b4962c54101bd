import re

from rank_bm25 import BM25Plus

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)

# Relative weight of a query term that only reaches a token through prefix or
# typo expansion, compared to an exact token hit.
PREFIX_WEIGHT = 0.375
FUZZY_WEIGHT = 0.45
MAX_FUZZY_DISTANCE = 6
DEFAULT_MAX_QUERY_TERMS = 64


def tokenize(text: str | None) -> list[str]:
    return _TOKEN_RE.findall((text or "").lower())


def edit_distance(a: str, b: str, max_dist: int) -> int:
    """Bounded Levenshtein; returns max_dist + 1 once the bound is exceeded."""
    if a == b:
        return 0
    if abs(len(a) - len(b)) > max_dist or not a or not b:
        return max_dist + 1
    if len(a) > len(b):
        a, b = b, a
    prev = list(range(len(a) + 1))
    for i, ch_b in enumerate(b, start=1):
        cur = [i]
        min_row = i
        for j, ch_a in enumerate(a, start=1):
            val = min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + (ch_a != ch_b))
            cur.append(val)
            min_row = min(min_row, val)
        prev = cur
        if min_row > max_dist:
            return max_dist + 1
    return prev[-1]


class _FieldIndex:
    def __init__(self, docs: list[list[str]]):
        self.presence = [set(d) for d in docs]
        self.vocabulary = sorted(set().union(*self.presence)) if docs else []
        # BM25Plus keeps idf positive even for terms present in every unit,
        # which matters for the handful of sections a document has.
        self.bm25 = BM25Plus(docs) if self.vocabulary else None
        self._expansions: dict[tuple[str, float, bool], list[tuple[str, float]]] = {}
        self._scores: dict[str, list[float]] = {}

    def expand(self, term: str, fuzzy: float, prefix: bool) -> list[tuple[str, float]]:
        key = (term, fuzzy, prefix)
        cached = self._expansions.get(key)
        if cached is not None:
            return cached
        out: list[tuple[str, float]] = []
        max_dist = min(MAX_FUZZY_DISTANCE, int(len(term) * fuzzy + 0.5))
        for token in self.vocabulary:
            if token == term:
                out.append((token, 1.0))
            elif prefix and token.startswith(term):
                out.append((token, PREFIX_WEIGHT))
            elif max_dist and abs(len(token) - len(term)) <= max_dist \
                    and edit_distance(term, token, max_dist) <= max_dist:
                out.append((token, FUZZY_WEIGHT))
        self._expansions[key] = out
        return out

    def term_scores(self, token: str) -> list[float]:
        scores = self._scores.get(token)
        if scores is None:
            raw = self.bm25.get_scores([token])
            scores = [float(s) if token in p else 0.0 for s, p in zip(raw, self.presence)]
            self._scores[token] = scores
        return scores


class SectionIndex:
    """Multi-field lexical index over a handful of note sections.

    One BM25 scorer per field; query terms are expanded to indexed tokens by
    exact, prefix and bounded-typo matching, and field scores are combined
    with per-field boosts.
    """

    def __init__(self, fields: tuple[str, ...], boost: dict[str, float] | None = None,
                 fuzzy: float = 0.2, prefix: bool = True, max_terms: int = DEFAULT_MAX_QUERY_TERMS):
        self.fields = fields
        self.boost = dict(boost or {})
        self.fuzzy = fuzzy
        self.prefix = prefix
        self.max_terms = max_terms
        self._ids: list[str] = []
        self._fields: dict[str, _FieldIndex] = {}

    def __len__(self) -> int:
        return len(self._ids)

    def build(self, units: list[dict]):
        self._ids = [u["source_id"] for u in units]
        self._fields = {f: _FieldIndex([tokenize(u.get(f)) for u in units]) for f in self.fields}

    def search(self, query: str, boost: dict[str, float] | None = None) -> list[dict]:
        """Return matching units as [{"source_id", "score"}], best first.

        Only the first `max_terms` distinct query terms are used. Ties keep
        build order. Units with no lexical overlap are left out.
        """
        terms = list(dict.fromkeys(tokenize(query)))[: max(0, self.max_terms)]
        if not self._ids or not terms:
            return []
        boosts = {**self.boost, **(boost or {})}
        totals = [0.0] * len(self._ids)
        for field in self.fields:
            index = self._fields[field]
            if index.bm25 is None:
                continue
            # scores are linear in the weight, so each token is scored once
            weights: dict[str, float] = {}
            for term in terms:
                for token, weight in index.expand(term, self.fuzzy, self.prefix):
                    weights[token] = weights.get(token, 0.0) + weight
            field_boost = boosts.get(field, 1.0)
            for token, weight in weights.items():
                for i, s in enumerate(index.term_scores(token)):
                    totals[i] += field_boost * weight * s
        ranked = sorted((i for i, s in enumerate(totals) if s > 0), key=lambda i: (-totals[i], i))
        return [{"source_id": self._ids[i], "score": totals[i]} for i in ranked]
