"""AI Agents package."""

from expense_tracker.agents.ai_agents import (
    ExpenseInsightAgent,
    records_for_prompt,
)

__all__ = [
    "ExpenseInsightAgent",
    "records_for_prompt",
]
