from __future__ import annotations

import logging

from domain.commands import (
    AdviceCommand,
    Command,
    ExpenseCommand,
    HelpCommand,
    Period,
    SaleCommand,
    StockAddCommand,
    StockRemoveCommand,
    StockSetCommand,
    SummaryCommand,
    UnknownCommand,
)
from domain.errors import CommandValidationError
from domain.models import MAX_QUANTITY, Currency
from parsing.amount import parse_amount
from parsing.normalizer import collapse_whitespace, split_phrase

logger = logging.getLogger(__name__)

USAGE: dict[str, str] = {
    "sale": "Usage: sale <item> <qty> <amount> [currency]\nExample: sale rice 3 ₦45000  or  sold 3 rice for 45000 NGN",
    "expense": "Usage: expense <category> <amount> [currency]\nExample: expense fuel £30  or  spent £30 on fuel",
    "stock": "Usage: stock <item> <qty>\nExample: stock rice 20",
    "stockadd": "Usage: add stock <item> <qty>\nExample: add stock rice 10",
    "stockremove": "Usage: remove stock <item> <qty>\nExample: remove stock rice 5",
}


def parse_command(canonical: str, default_currency: Currency | None = None) -> Command:
    """
    Validate a canonical command string and build its command variant.

    Raises CommandValidationError (with the command's usage text) before any
    side effect when arguments are missing or malformed, and AmountParseError
    when an amount token cannot be read.
    """
    text = collapse_whitespace(canonical)
    tokens = text.split(" ") if text else []
    if not tokens:
        return UnknownCommand(text="")

    head = tokens[0].lower()
    args = tokens[1:]

    if head == "help":
        return HelpCommand()
    if head == "summary":
        return SummaryCommand(period=Period.parse(args[0] if args else None))
    if head == "advice":
        return AdviceCommand(period=Period.parse(args[0] if args else None))
    if head == "sale":
        return _parse_sale(args, default_currency)
    if head == "expense":
        return _parse_expense(args, default_currency)
    if head == "stock":
        if len(args) < 2:
            raise CommandValidationError("stock", USAGE["stock"], "stock needs an item and a quantity")
        quantity = _parse_count("stock", args[1], allow_zero=True)
        return StockSetCommand(item=_clean_name("stock", args[0]), quantity=quantity)
    if head in ("stockadd", "stockremove"):
        if len(args) < 2:
            raise CommandValidationError(head, USAGE[head], f"{head} needs an item and a quantity")
        delta = _parse_count(head, args[1], allow_zero=False)
        if head == "stockadd":
            return StockAddCommand(item=_clean_name(head, args[0]), delta=delta)
        return StockRemoveCommand(item=_clean_name(head, args[0]), delta=delta)

    logger.debug("Unrecognized command head=%s", head)
    return UnknownCommand(text=text)


def _parse_sale(args: list[str], default_currency: Currency | None) -> SaleCommand:
    if len(args) < 3:
        raise CommandValidationError("sale", USAGE["sale"], "sale needs an item, a quantity and an amount")
    quantity = _parse_count("sale", args[1], allow_zero=False)
    money = parse_amount(args[2], args[3] if len(args) > 3 else None, default_currency)
    return SaleCommand(item=_clean_name("sale", args[0]), quantity=quantity, money=money)


def _parse_expense(args: list[str], default_currency: Currency | None) -> ExpenseCommand:
    if len(args) < 2:
        raise CommandValidationError("expense", USAGE["expense"], "expense needs a category and an amount")
    money = parse_amount(args[1], args[2] if len(args) > 2 else None, default_currency)
    return ExpenseCommand(category=_clean_name("expense", args[0]), money=money)


def _parse_count(command: str, token: str, allow_zero: bool) -> int:
    if not (token.isascii() and token.isdigit()):
        raise CommandValidationError(command, USAGE[command], f"{token!r} is not a whole number")
    digits = token.lstrip("0") or "0"
    # Length check first: int() refuses very long digit strings.
    if len(digits) > len(str(MAX_QUANTITY)) or int(digits) > MAX_QUANTITY:
        raise CommandValidationError(command, USAGE[command], f"quantity must be at most {MAX_QUANTITY}")
    value = int(digits)
    if value == 0 and not allow_zero:
        raise CommandValidationError(command, USAGE[command], "quantity must be greater than zero")
    return value


def _clean_name(command: str, token: str) -> str:
    name = collapse_whitespace(split_phrase(token)).lower()
    if not name:
        raise CommandValidationError(command, USAGE[command], "name must not be empty")
    return name
