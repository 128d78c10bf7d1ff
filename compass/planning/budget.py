"""Budget estimation and over-budget optimisation.

Costs come from each POI's ``estimated_cost`` or a category base cost
scaled by price level. When a trip is over budget, the LLM collaborator is
asked for a keep/replace/remove proposal; its answer is untrusted, and any
parse failure falls back to a deterministic local heuristic.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import ValidationError

from compass.models.budget import (
    BudgetBreakdown,
    BudgetOptimization,
    KeepDecision,
    RemoveDecision,
    ReplaceDecision,
)
from compass.models.common import PoiCategory
from compass.models.poi import PointOfInterest
from compass.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

BASE_COST: dict[PoiCategory, float] = {
    PoiCategory.restaurant: 25,
    PoiCategory.attraction: 15,
    PoiCategory.activity: 40,
    PoiCategory.accommodation: 100,
    PoiCategory.viewpoint: 0,
    PoiCategory.market: 20,
    PoiCategory.temple: 5,
    PoiCategory.cafe: 15,
    PoiCategory.other: 10,
}

TRANSPORT_SHARE = 0.15
MISC_BUFFER_SHARE = 0.10

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

AskFn = Callable[[str], str | None]


def estimate_poi_cost(poi: PointOfInterest) -> float:
    """Base category cost scaled by price level (level 2 is the baseline)."""
    level = poi.price_level or 2
    return BASE_COST.get(poi.category, 15) * (level / 2)


def poi_cost(poi: PointOfInterest) -> float:
    if poi.estimated_cost is not None:
        return poi.estimated_cost
    return estimate_poi_cost(poi)


def estimate_budget(pois: Sequence[PointOfInterest], num_days: int) -> BudgetBreakdown:
    """Per-category breakdown for a POI set.

    Accommodation is charged per night (``num_days``). Transport is a share
    of activities, and misc gets a buffer on food plus activities.
    """
    food = activities = accommodation = misc = 0.0

    for poi in pois:
        cost = poi_cost(poi)
        if poi.category == PoiCategory.restaurant:
            food += cost
        elif poi.category == PoiCategory.accommodation:
            accommodation += cost * num_days
        elif poi.category in (PoiCategory.attraction, PoiCategory.activity):
            activities += cost
        else:
            misc += cost

    transport = round_half_up(activities * TRANSPORT_SHARE)
    misc += round_half_up((food + activities) * MISC_BUFFER_SHARE)

    return BudgetBreakdown(
        food=food,
        activities=activities,
        transport=transport,
        accommodation=accommodation,
        misc=misc,
    )


def simple_optimization(
    pois: Sequence[PointOfInterest], overage: float
) -> BudgetOptimization:
    """Deterministic keep/replace/remove proposal.

    Walks POIs from most to least expensive (ties keep input order) and
    stops cutting once projected savings cover the overage. Costly
    restaurants and activities are replaced before anything is removed,
    and removal only happens for sets larger than five. At least one POI
    is always kept.
    """
    optimization = BudgetOptimization(source="heuristic")
    savings = 0.0

    # sorted() is stable, so equal costs keep their input order.
    for poi in sorted(pois, key=lambda p: -poi_cost(p)):
        cost = poi_cost(poi)

        if savings >= overage:
            optimization.keep.append(
                KeepDecision(poi_id=poi.id, reason="Within budget after adjustments")
            )
            continue

        if poi.category == PoiCategory.restaurant and (poi.price_level or 0) >= 3:
            saved = round_half_up(cost * 0.5)
            optimization.replace.append(
                ReplaceDecision(
                    poi_id=poi.id,
                    alternative="Local eatery with similar cuisine",
                    savings=saved,
                )
            )
            savings += saved
        elif poi.category == PoiCategory.activity and cost > 50:
            saved = round_half_up(cost * 0.7)
            optimization.replace.append(
                ReplaceDecision(
                    poi_id=poi.id,
                    alternative="Free/cheaper alternative nearby",
                    savings=saved,
                )
            )
            savings += saved
        elif (
            cost > 30
            and len(pois) > 5
            and len(optimization.remove) < len(pois) - 1
        ):
            optimization.remove.append(
                RemoveDecision(
                    poi_id=poi.id,
                    reason="Lowest priority based on ratings and distance",
                )
            )
            savings += cost
        else:
            optimization.keep.append(KeepDecision(poi_id=poi.id, reason="Good value"))

    return optimization


def _resolve_poi_id(
    ref: Any, by_id: dict[str, str], by_name: dict[str, str]
) -> str | None:
    """Map an LLM reference (id, name, or nested location object) to a POI id."""
    if isinstance(ref, dict):
        for key in ("poi_id", "id", "location", "original", "name"):
            if key in ref:
                resolved = _resolve_poi_id(ref[key], by_id, by_name)
                if resolved:
                    return resolved
        return None
    if isinstance(ref, str):
        return by_id.get(ref) or by_name.get(ref.strip().lower())
    return None


def _entries(parsed: dict[str, Any], key: str) -> list[Any]:
    value = parsed.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"Optimization field {key!r} is not a list")
    return value


def parse_optimization_response(
    answer: str, pois: Sequence[PointOfInterest]
) -> BudgetOptimization:
    """Parse the first JSON object in an LLM answer into an optimisation.

    Entries that do not resolve to a known POI are dropped.

    Raises:
        ValueError: No JSON object, invalid JSON, or none of keep/replace/remove,
            or a proposal that removes every POI
    """
    match = _JSON_OBJECT.search(answer or "")
    if not match:
        raise ValueError("Could not find JSON object in optimization response")

    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict) or not {"keep", "replace", "remove"} & parsed.keys():
        raise ValueError("Optimization response has no keep/replace/remove lists")

    by_id = {p.id: p.id for p in pois}
    by_name = {p.name.strip().lower(): p.id for p in pois}
    optimization = BudgetOptimization(source="llm")

    for entry in _entries(parsed, "keep"):
        poi_id = _resolve_poi_id(entry, by_id, by_name)
        if poi_id:
            reason = entry.get("reason", "") if isinstance(entry, dict) else ""
            optimization.keep.append(KeepDecision(poi_id=poi_id, reason=str(reason)))

    for entry in _entries(parsed, "replace"):
        poi_id = _resolve_poi_id(entry, by_id, by_name)
        if poi_id and isinstance(entry, dict):
            optimization.replace.append(
                ReplaceDecision(
                    poi_id=poi_id,
                    alternative=str(entry.get("alternative", "")),
                    savings=float(entry.get("savings") or 0),
                )
            )

    for entry in _entries(parsed, "remove"):
        poi_id = _resolve_poi_id(entry, by_id, by_name)
        if poi_id:
            reason = entry.get("reason", "") if isinstance(entry, dict) else ""
            optimization.remove.append(RemoveDecision(poi_id=poi_id, reason=str(reason)))

    if pois and {p.id for p in pois} <= optimization.removed_ids():
        raise ValueError("Optimization removes every location")

    return optimization


def build_optimization_prompt(
    pois: Sequence[PointOfInterest], current_total: float, target_budget: float
) -> str:
    listing = "\n".join(
        f"- id={p.id} name={p.name} type={p.category.value} "
        f"cost={poi_cost(p):g} rating={p.rating if p.rating is not None else 'n/a'}"
        for p in pois
    )
    return (
        f"A trip is estimated at {current_total:g} but the budget is {target_budget:g}.\n"
        f"Locations:\n{listing}\n\n"
        "Suggest which locations to keep, replace with a cheaper alternative, or remove "
        "so the trip fits the budget. Respond in JSON: "
        '{"keep": [{"id": "...", "reason": "..."}], '
        '"replace": [{"id": "...", "alternative": "...", "savings": 0}], '
        '"remove": [{"id": "...", "reason": "..."}]}'
    )


def optimize_budget(
    pois: Sequence[PointOfInterest],
    current_total: float,
    target_budget: float,
    ask: AskFn | None = None,
) -> BudgetOptimization:
    """Propose cuts for an over-budget trip.

    Args:
        pois: Trip POIs
        current_total: Estimated total
        target_budget: Budget limit
        ask: Optional LLM collaborator; returns answer text or None

    Returns:
        LLM proposal when it parses, otherwise the deterministic heuristic
    """
    overage = current_total - target_budget
    if ask is not None:
        answer = ask(build_optimization_prompt(pois, current_total, target_budget))
        if answer:
            try:
                return parse_optimization_response(answer, pois)
            except (ValueError, TypeError, ValidationError) as exc:
                # json.JSONDecodeError is a ValueError
                logger.warning(
                    "budget_optimization_unparseable",
                    extra={"error": str(exc), "answer_chars": len(answer)},
                )
    return simple_optimization(pois, overage)


def apply_optimization(
    pois: Sequence[PointOfInterest], optimization: BudgetOptimization
) -> list[PointOfInterest]:
    """Drop removed POIs; replacements stay in place as advisories."""
    removed = optimization.removed_ids()
    return [p for p in pois if p.id not in removed]
