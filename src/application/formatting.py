from __future__ import annotations

from decimal import Decimal

from application.recorder import StockChange
from domain.models import Currency, ExpenseEvent, SaleEvent, StockEvent
from domain.schemas import Summary

HELP_TEXT = "\n".join(
    [
        "👋 Predicta commands:",
        "• sold 3 rice for 45000  (or: sale rice 3 ₦45000)",
        "• spent £30 on fuel  (or: expense fuel 30 GBP)",
        "• stock rice 20  (set the current level)",
        "• add stock rice 10 / remove stock rice 5",
        "• summary [today|week|month]",
        "• advice [today|week|month]",
    ]
)

UNKNOWN_HINT = "🤔 Sorry, I didn't understand that.\n" + HELP_TEXT

STORE_APOLOGY = "😕 Sorry, something went wrong saving or reading your records. Please try again in a moment."


def format_money(amount: Decimal, currency: Currency) -> str:
    return f"{currency.symbol}{amount:,.2f}"


def format_sale(event: SaleEvent) -> str:
    return f"✅ Sale recorded: {event.quantity} × {event.item} for {format_money(event.amount, event.currency)}"


def format_expense(event: ExpenseEvent) -> str:
    return f"✅ Expense recorded: {event.category} {format_money(event.amount, event.currency)}"


def format_stock_set(event: StockEvent) -> str:
    return f"📦 Stock set: {event.item} = {event.quantity}"


def format_stock_change(change: StockChange) -> str:
    if change.requested_delta >= 0:
        text = f"📦 Stock added: {change.item} {change.previous} → {change.current} (+{change.requested_delta})"
        if change.capped:
            text += f"\nStock levels top out at {change.current}, so the level was capped."
        return text
    text = f"📦 Stock removed: {change.item} {change.previous} → {change.current} ({change.requested_delta})"
    if change.floored:
        text += f"\nOnly had {change.previous} in stock, so the level is now 0."
    return text


def _bullets(tips: list[str]) -> list[str]:
    if not tips:
        return ["• Looking good. Keep logging your sales and expenses."]
    return [f"• {tip}" for tip in tips]


def render_summary(summary: Summary, tips: list[str]) -> str:
    lines = [f"📊 {summary.business_name} - {summary.period_label}"]

    lines.append("Sales:")
    if summary.sales:
        for currency, line in summary.sales.items():
            lines.append(f"- {currency.value}: {format_money(line.amount, currency)} ({line.quantity} items)")
    else:
        lines.append("- none")

    lines.append("Expenses:")
    if summary.expenses:
        for currency, amount in summary.expenses.items():
            lines.append(f"- {currency.value}: {format_money(amount, currency)}")
    else:
        lines.append("- none")

    lines.append("Net:")
    if summary.net:
        for currency, amount in summary.net.items():
            sign = "-" if amount < 0 else ""
            lines.append(f"- {currency.value}: {sign}{format_money(abs(amount), currency)}")
    else:
        lines.append("- none")

    lines.append("Top products:")
    if summary.top_products:
        for rank, product in enumerate(summary.top_products, start=1):
            lines.append(
                f"{rank}. {product.item} {format_money(product.revenue, product.currency)} (qty {product.quantity})"
            )
    else:
        lines.append("- none")

    lines.append("Top expense categories:")
    if summary.top_categories:
        for rank, category in enumerate(summary.top_categories, start=1):
            lines.append(f"{rank}. {category.category} {format_money(category.total, category.currency)}")
    else:
        lines.append("- none")

    lines.append("Stock:")
    if summary.stock:
        for item in summary.stock:
            lines.append(f"- {item.item}: {item.quantity}")
    else:
        lines.append("- none")

    lines.append("Tips:")
    lines.extend(_bullets(tips))
    return "\n".join(lines)


def render_advice(summary: Summary, tips: list[str]) -> str:
    if summary.top_products:
        top = summary.top_products[0]
        headline = f"Top product: {top.item} ({format_money(top.revenue, top.currency)})"
    else:
        headline = "Top product: None yet"
    lines = [f"💡 Advice for {summary.business_name} ({summary.period_label})", headline]
    lines.extend(_bullets(tips))
    return "\n".join(lines)
