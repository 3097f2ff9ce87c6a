from .engine import AggregationEngine
from .costs import aggregate_costs, cost_report

__all__ = ["AggregationEngine", "aggregate_costs", "cost_report"]
