"""
HTML snippets for the dashboard boxes.

Streamlit renders these with unsafe_allow_html, so every piece of text
that came from a user or from the model is escaped here.
"""

from datetime import datetime
from html import escape
from typing import Optional

from expense_tracker.models.expense import AIInsight, InsightType

# insight type -> (css class, icon)
INSIGHT_BOXES = {
    InsightType.WARNING: ("warning-box", "⚠️"),
    InsightType.SUCCESS: ("success-box", "✅"),
    InsightType.TIP: ("tip-box", "💡"),
    InsightType.INFO: ("info-box", "ℹ️"),
}


def insight_card_html(insight: AIInsight) -> str:
    box, icon = INSIGHT_BOXES.get(insight.type, INSIGHT_BOXES[InsightType.INFO])
    return f"""
    <div class="{box}">
        <h4>{icon} {escape(insight.title)}</h4>
        <p>{escape(insight.message)}</p>
    </div>
    """


def welcome_html(name: str, joined: Optional[datetime] = None) -> str:
    joined_line = (
        f"<p><strong>Joined:</strong> {joined.strftime('%d %B %Y')}</p>" if joined else ""
    )
    return f"""
    <div class="success-box">
        <h3>👋 Welcome Back, {escape(name)}!</h3>
        <p>Here's a quick overview of your recent expense activity.</p>
        {joined_line}
    </div>
    """
