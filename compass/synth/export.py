"""Itinerary export as JSON or plain text."""

import json

from compass.models.itinerary import Itinerary

RULE_WIDTH = 40


def to_json(itinerary: Itinerary) -> str:
    return json.dumps(itinerary.model_dump(mode="json"), indent=2)


def from_json(payload: str) -> Itinerary:
    """Parse an exported itinerary back.

    Raises:
        pydantic.ValidationError: If the payload is not a valid itinerary.
    """
    return Itinerary.model_validate_json(payload)


CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥"}


def _money(amount: float, currency: str = "USD") -> str:
    """Amount with the currency symbol, or the ISO code when there is none."""
    code = currency.upper()
    prefix = CURRENCY_SYMBOLS.get(code, f"{code} ")
    number = f"{amount:.0f}" if amount == int(amount) else f"{amount:.2f}"
    return f"{prefix}{number}"


def format_as_text(itinerary: Itinerary) -> str:
    """Render a printable plain-text itinerary in the trip currency."""
    currency = itinerary.preferences.currency
    lines = [
        "COMPASS ITINERARY",
        "=" * RULE_WIDTH,
        "",
        itinerary.name,
        f"Destination: {itinerary.destination}",
        f"Budget: {_money(itinerary.total_budget, currency)}",
        "",
    ]

    for day in itinerary.days:
        lines.append("─" * RULE_WIDTH)
        lines.append(day.title)
        lines.append(day.date.isoformat())
        lines.append("─" * RULE_WIDTH)
        lines.append("")
        for item in day.items:
            lines.append(f"{item.start_time} - {item.end_time}")
            lines.append(item.poi.name)
            if item.poi.address:
                lines.append(f"  {item.poi.address}")
            cost = item.poi.estimated_cost or 0
            if cost > 0:
                lines.append(f"  ~{_money(cost, currency)}")
            if item.tips:
                lines.append(f"  {item.tips[0]}")
            lines.append("")

    if itinerary.map_url:
        lines.append(f"View Route: {itinerary.map_url}")
    return "\n".join(lines) + "\n"
