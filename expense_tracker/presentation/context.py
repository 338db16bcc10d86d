"""
UI context passed explicitly to every render function.

The theme used to live in a global toggle. Keeping it in one small
object makes the chart colours a plain function of their inputs.
"""

from dataclasses import dataclass, replace
from enum import Enum


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class UIContext:
    theme: Theme = Theme.LIGHT
    currency_symbol: str = "$"

    @property
    def is_dark(self) -> bool:
        return self.theme == Theme.DARK

    def toggled(self) -> "UIContext":
        """Same context with the other theme."""
        return replace(self, theme=Theme.LIGHT if self.is_dark else Theme.DARK)

    def money(self, amount) -> str:
        return f"{self.currency_symbol}{float(amount):,.2f}"
