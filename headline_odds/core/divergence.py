from __future__ import annotations

# Phrasing that presents an outcome as settled or imminent.
CONFIDENT_PHRASES: tuple[str, ...] = (
    "set to ", "will ", "confirms", "confirmed", "signals", "expected to",
    "poised to", "on track", "heading for", "secures", "seals", "clinches",
    "approved", "approves", "passes ", "passed ", "to sign", "has signed",
    "launches", "announces", "announced", "officially", "prepares to",
    "is set", "guaranteed", "certain to", "mandates", "bans ", "wins ",
    "defeats", "rejects", "sealed", "locked in", "green-lights",
)

DIVERGE_THRESHOLD = 40


def is_divergent(headline: str, yes_price: int | None, *, threshold: int = DIVERGE_THRESHOLD) -> bool:
    """Flag a confidently worded headline whose market still prices YES below ``threshold`` cents."""

    if yes_price is None or yes_price >= threshold:
        return False
    lower = headline.lower()
    return any(phrase in lower for phrase in CONFIDENT_PHRASES)
