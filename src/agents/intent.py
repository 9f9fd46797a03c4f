"""Keyword heuristic mapping caller utterances to an interest category."""

from __future__ import annotations

import re
from typing import Protocol

RENTAL = "Rental"
PURCHASE = "Purchase"
SELLING = "Selling"
MAINTENANCE = "Maintenance"

INTEREST_CATEGORIES: tuple[str, ...] = (RENTAL, PURCHASE, SELLING, MAINTENANCE)

# Checked in order; a later category overrides an earlier one in the same utterance.
INTENT_KEYWORDS: dict[str, frozenset[str]] = {
    RENTAL: frozenset({"rent", "renting", "rental", "lease", "leasing"}),
    PURCHASE: frozenset({"buy", "buying", "purchase", "invest", "investing", "investment"}),
    SELLING: frozenset({"sell", "selling", "list", "listing"}),
    MAINTENANCE: frozenset(
        {"maintenance", "repair", "fix", "broken", "leak", "plumbing", "heat", "ac", "pest", "mold"}
    ),
}


class IntentClassifier(Protocol):
    def classify(self, text: str) -> str | None:  # pragma: no cover - protocol stub
        ...


def _compile(words: frozenset[str]) -> re.Pattern[str]:
    alternation = "|".join(sorted(re.escape(word) for word in words))
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


class KeywordIntentClassifier:
    """Word-boundary keyword matcher.

    False positives are expected ("I'll list my questions" reads as Selling);
    the category is only a hint for the lead record.
    """

    def __init__(self, keywords: dict[str, frozenset[str]] | None = None) -> None:
        self._patterns = [
            (category, _compile(words)) for category, words in (keywords or INTENT_KEYWORDS).items()
        ]

    def classify(self, text: str) -> str | None:
        matched: str | None = None
        for category, pattern in self._patterns:
            if pattern.search(text or ""):
                matched = category
        return matched
