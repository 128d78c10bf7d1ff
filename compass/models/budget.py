"""Budget breakdown and optimisation models."""

from pydantic import BaseModel, Field, model_validator

from .poi import PointOfInterest


class BudgetBreakdown(BaseModel):
    """Per-category cost estimate. ``total`` is always the category sum."""

    food: float = Field(default=0.0, ge=0)
    activities: float = Field(default=0.0, ge=0)
    transport: float = Field(default=0.0, ge=0)
    accommodation: float = Field(default=0.0, ge=0)
    misc: float = Field(default=0.0, ge=0)
    total: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _compute_total(self) -> "BudgetBreakdown":
        self.total = (
            self.food + self.activities + self.transport + self.accommodation + self.misc
        )
        return self


class BudgetCheck(BaseModel):
    """Outcome of comparing a breakdown with the trip budget."""

    is_over_budget: bool
    overage_amount: float = Field(ge=0)
    budget_limit: float = Field(ge=0)


class KeepDecision(BaseModel):
    poi_id: str
    reason: str


class ReplaceDecision(BaseModel):
    poi_id: str
    alternative: str
    savings: float = Field(default=0.0, ge=0)


class RemoveDecision(BaseModel):
    poi_id: str
    reason: str


class BudgetOptimization(BaseModel):
    """Keep/replace/remove proposal for an over-budget trip."""

    keep: list[KeepDecision] = Field(default_factory=list)
    replace: list[ReplaceDecision] = Field(default_factory=list)
    remove: list[RemoveDecision] = Field(default_factory=list)
    source: str = Field(default="heuristic", description="llm or heuristic")

    def removed_ids(self) -> set[str]:
        return {decision.poi_id for decision in self.remove}


class BudgetReport(BaseModel):
    """Everything the budget stage produced."""

    breakdown: BudgetBreakdown
    check: BudgetCheck
    optimization: BudgetOptimization | None = None
    adjusted_pois: list[PointOfInterest] | None = None
