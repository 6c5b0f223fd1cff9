"""Title-match scoring for free-text search results.

Pure transformation logic - no I/O, no framework dependencies.
Scores provider search entries against a reference title/year and picks
the single best candidate across several query runs.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog
from unidecode import unidecode as _unidecode

from stremsrc.domain.entities.streams import MatchCandidate, SearchEntry

log = structlog.get_logger(__name__)

DEFAULT_THRESHOLD = 40.0
YEAR_MATCH_BONUS = 30.0
YEAR_MISMATCH_PENALTY = 50.0

# 4-digit year starting with 19xx or 20xx
_YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")
_PAREN_YEAR_RE = re.compile(r"\(\s*(?:19|20)\d{2}\s*\)")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9 ]")


def normalize_title(text: str) -> str:
    """Transliterate to ASCII, lowercase, ``&`` -> ``and``, keep ``[a-z0-9 ]``.

    Idempotent: ``normalize_title(normalize_title(x)) == normalize_title(x)``.
    """
    text = _unidecode(text).lower().replace("&", " and ")
    text = _NON_ALNUM_RE.sub(" ", text)
    return " ".join(text.split())


def similarity(a: str, b: str) -> float:
    """Jaccard index of the normalized word sets, scaled to 0-100."""
    words_a = set(normalize_title(a).split())
    words_b = set(normalize_title(b).split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union) * 100.0


def extract_year(text: str) -> int | None:
    """Last 4-digit year in *text*, or None."""
    matches = _YEAR_RE.findall(text)
    return int(matches[-1]) if matches else None


def score_candidate(
    candidate_title: str,
    target_title: str,
    *,
    candidate_year: int | None = None,
    target_year: int | None = None,
) -> float:
    """Similarity plus year adjustment.

    A parenthesized year in the candidate title is not part of the title
    comparison; it only feeds the year adjustment when *candidate_year*
    is not given.
    """
    if candidate_year is None:
        candidate_year = extract_year(candidate_title)
    score = similarity(_PAREN_YEAR_RE.sub(" ", candidate_title), target_title)

    if candidate_year is not None and target_year is not None:
        if candidate_year == target_year:
            score += YEAR_MATCH_BONUS
        else:
            score -= YEAR_MISMATCH_PENALTY
    return score


def find_best_match(
    candidates_per_query: Iterable[Iterable[SearchEntry]],
    target_title: str,
    target_year: int | None = None,
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> MatchCandidate | None:
    """Best-scoring entry across all query runs, or None.

    Queries are processed in the given order; on an exact score tie the
    first-seen entry is kept.  The winner must score strictly above
    *threshold*.
    """
    best: MatchCandidate | None = None
    for entries in candidates_per_query:
        for entry in entries:
            score = score_candidate(
                entry.title,
                target_title,
                candidate_year=entry.year,
                target_year=target_year,
            )
            if best is None or score > best.score:
                best = MatchCandidate(
                    title=entry.title,
                    url=entry.url,
                    score=score,
                    year=entry.year if entry.year is not None else extract_year(entry.title),
                )

    if best is None or best.score <= threshold:
        log.debug(
            "title_match_rejected",
            target=target_title,
            best_score=best.score if best else None,
            threshold=threshold,
        )
        return None

    log.debug("title_match_found", target=target_title, title=best.title, score=best.score)
    return best
