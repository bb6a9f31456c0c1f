"""
Deterministic rewrite of loosely phrased messages into canonical commands.

Only a fixed set of sentence shapes is recognized; anything else is passed
through unchanged and left for the command parser to reject.
"""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")

_SOLD_RE = re.compile(r"^sold (?P<qty>\S+) (?P<item>.+?) for (?P<amount>\S+)(?: (?P<currency>\S+))?$", re.IGNORECASE)
_SPENT_RE = re.compile(r"^spent (?P<amount>\S+)(?: (?P<currency>[A-Za-z]{3}))? on (?P<category>.+)$", re.IGNORECASE)
_ADD_STOCK_RE = re.compile(r"^add stock (?P<item>.+) (?P<qty>\S+)$", re.IGNORECASE)
_REMOVE_STOCK_RE = re.compile(r"^remove stock (?P<item>.+) (?P<qty>\S+)$", re.IGNORECASE)

_PASSTHROUGH_PREFIXES = ("summary", "advice")


def collapse_whitespace(text: str | None) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def join_phrase(phrase: str) -> str:
    """Turn a multi-word phrase into a single whitespace-free token."""
    return "_".join(phrase.split(" "))


def split_phrase(token: str) -> str:
    return token.replace("_", " ")


def normalize_command(text: str | None) -> str:
    message = collapse_whitespace(text)
    lowered = message.lower()

    if lowered.startswith(_PASSTHROUGH_PREFIXES):
        return message
    if lowered == "help":
        return "help"

    match = _SOLD_RE.match(message)
    if match:
        parts = ["sale", join_phrase(match["item"]), match["qty"], match["amount"]]
        if match["currency"]:
            parts.append(match["currency"])
        return " ".join(parts)

    match = _SPENT_RE.match(message)
    if match:
        parts = ["expense", join_phrase(match["category"]), match["amount"]]
        if match["currency"]:
            parts.append(match["currency"])
        return " ".join(parts)

    match = _ADD_STOCK_RE.match(message)
    if match:
        return f"stockadd {join_phrase(match['item'])} {match['qty']}"

    match = _REMOVE_STOCK_RE.match(message)
    if match:
        return f"stockremove {join_phrase(match['item'])} {match['qty']}"

    return message
