"""
Expense Tracker - Source Package

A personal expense tracker: signed-in users log expenses, see a per-day
chart and spending statistics, and get AI-written insights about their
recent spending.

DESIGN PRINCIPLES:
1. Aggregation is pure - it never touches storage or the network
2. Every action returns a result, never raises to the UI
3. The AI only sees the user's own records
4. Storage layer is swappable (SQL or Google Sheets)
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
