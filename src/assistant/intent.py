"""Phrase-based intent classification for inbound text messages."""

from __future__ import annotations

from src.models import Intent


def classify_intent(text: str) -> Intent:
    """Map a message body to an intent by substring containment.

    Checked in priority order on the lower-cased body: a sales question must
    mention both "how much" and "sell" (in any order), then "top customers";
    anything else is delegated to the language model.
    """
    body = text.lower()
    if "how much" in body and "sell" in body:
        return Intent.SALES_SUMMARY
    if "top customers" in body:
        return Intent.TOP_CUSTOMERS
    return Intent.DELEGATE
