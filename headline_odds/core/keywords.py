from __future__ import annotations

import re

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "can", "shall", "to", "of", "in", "for",
        "on", "with", "at", "by", "from", "as", "into", "through", "during",
        "before", "after", "above", "below", "between", "out", "off", "over",
        "under", "again", "further", "then", "once", "here", "there", "when",
        "where", "why", "how", "all", "both", "each", "few", "more", "most",
        "other", "some", "such", "no", "nor", "not", "only", "own", "same",
        "so", "than", "too", "very", "just", "because", "but", "and", "or",
        "if", "while", "about", "up", "its", "it", "this", "that", "these",
        "those", "he", "she", "they", "them", "his", "her", "their", "what",
        "which", "who", "whom", "new", "says", "said", "report", "reports",
        "according", "also", "get", "gets", "got", "going", "make",
        "makes", "made", "take", "takes", "look", "year", "years", "day",
        "days", "week", "weeks", "month", "months", "time", "way", "us",
        "back", "first", "last", "next", "now", "still", "even", "many",
        "much", "well", "long", "right", "left", "big", "old", "high", "low",
    }
)

_NON_ALNUM = re.compile(r"[^a-z0-9 ]")


def extract_keywords(text: str) -> list[str]:
    """Return lowercase keyword tokens of ``text`` in their original order.

    Tokens of two characters or fewer and stop words are dropped.
    """

    cleaned = _NON_ALNUM.sub(" ", (text or "").lower())
    return [token for token in cleaned.split() if len(token) > 2 and token not in STOP_WORDS]


__all__ = ["STOP_WORDS", "extract_keywords"]
