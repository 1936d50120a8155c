"""Category enum and its static display table."""
from enum import Enum
from types import MappingProxyType
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict


class Category(str, Enum):
    """Fixed set of transaction categories."""

    FOOD = "Food & Drinks"
    TRANSPORT = "Transport"
    RENT = "Rent & Bills"
    SHOPPING = "Shopping"
    HEALTH = "Healthcare"
    ENTERTAINMENT = "Entertainment"
    INVESTMENT = "Investment"
    SALARY = "Salary"
    FREELANCE = "Freelance"
    OTHERS = "Others"


# Budget key meaning "all categories combined"
TOTAL = "Total"


class CategoryConfig(BaseModel):
    """Display metadata for a category."""

    model_config = ConfigDict(frozen=True)

    name: str
    color: str
    icon: str
    affinity: str  # "expense", "income" or "both"


CATEGORIES_CONFIG = MappingProxyType({
    Category.FOOD: CategoryConfig(name=Category.FOOD.value, color="#f87171", icon="🍔", affinity="expense"),
    Category.TRANSPORT: CategoryConfig(name=Category.TRANSPORT.value, color="#60a5fa", icon="🚗", affinity="expense"),
    Category.RENT: CategoryConfig(name=Category.RENT.value, color="#fbbf24", icon="🏠", affinity="expense"),
    Category.SHOPPING: CategoryConfig(name=Category.SHOPPING.value, color="#818cf8", icon="🛍️", affinity="expense"),
    Category.HEALTH: CategoryConfig(name=Category.HEALTH.value, color="#34d399", icon="💊", affinity="expense"),
    Category.ENTERTAINMENT: CategoryConfig(name=Category.ENTERTAINMENT.value, color="#f472b6", icon="🎬", affinity="expense"),
    Category.INVESTMENT: CategoryConfig(name=Category.INVESTMENT.value, color="#a78bfa", icon="📈", affinity="expense"),
    Category.SALARY: CategoryConfig(name=Category.SALARY.value, color="#10b981", icon="💰", affinity="income"),
    Category.FREELANCE: CategoryConfig(name=Category.FREELANCE.value, color="#3b82f6", icon="💻", affinity="income"),
    Category.OTHERS: CategoryConfig(name=Category.OTHERS.value, color="#94a3b8", icon="📦", affinity="both"),
})

DEFAULT_COLOR = "#cccccc"
DEFAULT_ICON = "📦"


def get_category_config(category: Union[Category, str, None]) -> CategoryConfig:
    """
    Look up display metadata for a category.

    Unknown values resolve to a neutral default instead of raising.
    """
    try:
        key = Category(category)
    except ValueError:
        return CategoryConfig(name=str(category), color=DEFAULT_COLOR, icon=DEFAULT_ICON, affinity="both")
    return CATEGORIES_CONFIG[key]


def categories_for_type(tx_type: Optional[str] = None) -> List[CategoryConfig]:
    """Categories offerable for a transaction type (all of them when type is None)."""
    configs = list(CATEGORIES_CONFIG.values())
    if tx_type is None:
        return configs
    return [c for c in configs if c.affinity == tx_type or c.affinity == "both"]
