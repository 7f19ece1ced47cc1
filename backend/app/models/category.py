"""
Category and categorization method enumerations.
"""

import enum
from typing import Optional


class Category(str, enum.Enum):
    """Closed set of spending/income categories."""
    revenue = "Revenue"
    meals_entertainment = "Meals & Entertainment"
    operations = "Operations"
    marketing = "Marketing"
    utilities = "Utilities"
    travel = "Travel"
    professional_services = "Professional Services"
    payroll = "Payroll"
    rent = "Rent"
    insurance = "Insurance"
    taxes = "Taxes"
    inventory = "Inventory"
    office_supplies = "Office Supplies"
    other = "Other"

    @classmethod
    def from_value(cls, value: str) -> Optional["Category"]:
        """Look up a category by its display value or member name, ignoring case."""
        if isinstance(value, cls):
            return value
        wanted = (value or "").strip().lower()
        for category in cls:
            if category.value.lower() == wanted or category.name == wanted:
                return category
        return None


class CategorizationMethod(str, enum.Enum):
    """Tier that produced a categorization."""
    learned_pattern = "learned_pattern"
    rule_based = "rule_based"
    ai_fallback = "ai_fallback"
