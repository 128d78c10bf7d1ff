"""Budget verification.

Pure function comparing an estimated breakdown with the trip budget
(daily budget times number of days). Equality is within budget.
"""

from compass.metrics.registry import MetricsClient
from compass.models.budget import BudgetBreakdown, BudgetCheck
from compass.models.intent import TripPreferences


def check_budget(
    breakdown: BudgetBreakdown,
    preferences: TripPreferences,
    num_days: int,
    metrics: MetricsClient | None = None,
) -> BudgetCheck:
    """Check whether the estimated total exceeds the trip budget.

    Args:
        breakdown: Estimated costs
        preferences: Trip preferences carrying the daily budget
        num_days: Trip length used to scale the daily budget
        metrics: Optional metrics client for telemetry

    Returns:
        BudgetCheck; ``overage_amount`` is 0 whenever the trip fits
    """
    limit = preferences.daily_budget * max(1, num_days)

    if metrics:
        metrics.observe_budget_delta(limit, breakdown.total)

    is_over = breakdown.total > limit
    return BudgetCheck(
        is_over_budget=is_over,
        overage_amount=breakdown.total - limit if is_over else 0.0,
        budget_limit=limit,
    )
