"""
AI Agent for Expense Tracker

DESIGN DECISION: A single Gemini-backed agent handles every language
model request the app makes:
1. Suggest a category for a typed description
2. Turn recent expenses into a handful of insight cards
3. Answer a follow-up question about those expenses

CRITICAL BOUNDARIES:
   - CAN: Read the expense snapshot it is handed
   - CANNOT: Write anything to the record store
   - CANNOT: Invent expenses that are not in the snapshot
   - MUST: Raise AIUnavailableError instead of returning partial junk

The actions decide what the user sees when the agent fails.
"""

import json
from typing import Any, Optional, Sequence

import google.generativeai as genai
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.config import get_settings
from expense_tracker.errors import AIUnavailableError
from expense_tracker.models.expense import AIInsight, ExpenseCategory, ExpenseRecord


def records_for_prompt(records: Sequence[ExpenseRecord]) -> list[dict]:
    """
    Flatten records into the JSON the prompts embed.

    The date sent is when the record was created, which is what the
    insight window is measured on.
    """
    return [
        {
            "id": r.id,
            "amount": float(r.amount),
            "category": r.category or ExpenseCategory.OTHER.value,
            "description": r.description,
            "date": r.created_at.isoformat(),
        }
        for r in records
    ]


def _extract_json(text: str, opening: str, closing: str) -> Any:
    """Pull the first JSON object or array out of a chatty model reply."""
    start = text.find(opening)
    end = text.rfind(closing) + 1
    if start < 0 or end <= start:
        raise AIUnavailableError("Model reply contained no JSON")
    try:
        return json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise AIUnavailableError(f"Model reply was not valid JSON: {e}")


class ExpenseInsightAgent:
    """
    Gemini agent for categorization, insights and follow-up answers.

    A pre-built model can be injected; anything with an async
    generate_content_async(prompt) returning an object with .text works.
    """

    def __init__(self, model: Optional[Any] = None):
        self._settings = get_settings().gemini if model is None else None
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def _ask(self, prompt: str) -> str:
        try:
            response = await self._model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            # The SDK raises a wide family of transport and quota errors
            raise AIUnavailableError(f"Gemini request failed: {e}") from e
        if not text:
            raise AIUnavailableError("Gemini returned an empty reply")
        return text

    async def suggest_category(self, description: str) -> str:
        """
        Pick one category for an expense description.

        Replies outside the known category list become Other.
        """
        categories = ", ".join(c.value for c in ExpenseCategory)
        prompt = f"""You are categorizing a personal expense.

Expense description: "{description}"

Available categories: {categories}

Respond with ONLY the category name, exactly as written in the list.
If unsure, respond with "Other"."""

        text = await self._ask(prompt)
        # Models sometimes wrap the answer in quotes or a trailing period
        label = text.splitlines()[0].strip().rstrip(".").strip("\"'` ")
        return ExpenseCategory.from_label(label).value

    async def generate_insights(self, records: Sequence[ExpenseRecord]) -> list[AIInsight]:
        """
        Produce a few insight cards from recent expenses.

        Raises:
            AIUnavailableError: If the model fails or returns no usable cards
        """
        payload = json.dumps(records_for_prompt(records), indent=2)
        prompt = f"""You are a financial advisor analyzing a user's recent expenses.

Expense data (JSON):
{payload}

Give 3-4 short, actionable insights about spending patterns, budget
warnings, savings opportunities or positive habits.

Respond with ONLY a JSON array in this exact format:
[{{"type": "warning|info|success|tip", "title": "short title", "message": "one or two sentences", "action": "suggested next step", "confidence": 0.8}}]

Use ONLY the data above. Do NOT invent expenses."""

        text = await self._ask(prompt)
        data = _extract_json(text, "[", "]")
        if not isinstance(data, list):
            raise AIUnavailableError("Model reply was not a list of insights")

        insights = []
        for index, item in enumerate(data, start=1):
            if not isinstance(item, dict):
                continue
            fields = {k: v for k, v in item.items() if k != "id"}
            try:
                insights.append(AIInsight(id=f"ai-{index}", **fields))
            except PydanticValidationError:
                continue

        if not insights:
            raise AIUnavailableError("Model returned no usable insights")
        return insights

    async def answer_question(self, question: str, records: Sequence[ExpenseRecord]) -> str:
        """
        Answer a question using only the given expenses.

        Raises:
            AIUnavailableError: If the model fails or says nothing
        """
        payload = json.dumps(records_for_prompt(records), indent=2)
        prompt = f"""You are answering a question about a user's personal expenses using ONLY the data provided.

Question: "{question}"

Expense data (JSON, last 30 days):
{payload}

- Answer in 2-3 sentences of plain language
- Quote amounts in dollars with two decimals
- If the data is empty or does not answer the question, say so

IMPORTANT: Use ONLY the data above. Do NOT add any information not in the data."""

        return await self._ask(prompt)

    # alias
    summarize = answer_question
