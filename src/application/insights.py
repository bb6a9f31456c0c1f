from __future__ import annotations

from decimal import Decimal

from domain.schemas import Summary

MAX_TIPS = 6
CONCENTRATION_SHARE = Decimal("0.7")
OVERSTOCK_THRESHOLD = 200


def generate_tips(summary: Summary) -> list[str]:
    """
    Rule-based tips for a computed summary. No I/O.

    Rules run in a fixed order and the list is cut at MAX_TIPS. The stock
    rules look only at summary.stock[0], the most recently updated item.
    """
    tips: list[str] = []

    if summary.total_sales <= 0:
        tips.append("No sales logged yet. Record each sale, e.g. 'sold 3 rice for 45000'.")

    if summary.total_expenses <= 0:
        tips.append("No expenses tracked yet. Log costs too, e.g. 'spent 5000 on fuel', to see your real profit.")

    products = summary.top_products
    if len(products) >= 2:
        leader = products[0]
        combined = sum((p.revenue for p in products), Decimal("0"))
        if combined > 0 and leader.revenue >= combined * CONCENTRATION_SHARE:
            tips.append(
                f"'{leader.item}' brings in most of your top-product revenue. "
                "Relying on one product is risky; push your other items too."
            )
    elif len(products) == 1:
        tips.append(f"Only '{products[0].item}' is selling. Consider adding or promoting other products.")

    if summary.stock:
        first = summary.stock[0]
        if first.quantity == 0:
            tips.append(f"'{first.item}' is out of stock. Restock soon to avoid losing sales.")
        elif first.quantity >= OVERSTOCK_THRESHOLD:
            tips.append(f"You hold {first.quantity} of '{first.item}'. Consider a promo to move excess stock.")
    else:
        tips.append("No stock recorded. Track inventory, e.g. 'stock rice 20'.")

    for currency, net in summary.net.items():
        if net < 0:
            tips.append(f"You spent more than you sold in {currency.value}. Review your costs in that currency.")

    return tips[:MAX_TIPS]
