"""Read-only query selectors."""

from payday_kernel.selectors.base import BaseSelector
from payday_kernel.selectors.cycle_selector import AccountSelector, CycleSelector

__all__ = [
    "BaseSelector",
    "CycleSelector",
    "AccountSelector",
]
