from dataclasses import dataclass
from datetime import date
from typing import Optional

from utils.constants import ORIGIN_RECURRING


@dataclass
class Transaction:
    id: int
    type: str               # 'income' | 'expense'
    amount: float
    category: str
    description: str
    date: date
    origin: str             # 'manual' | 'recurring'
    recurring_rule_id: Optional[int] = None
    created_at: str = ""


@dataclass(frozen=True)
class GeneratedOccurrence:
    """One dated transaction materialized from a recurring rule, not yet stored."""
    rule_id: Optional[int]
    type: str
    amount: float
    category: str
    date: date
    description: str = ""
    origin: str = ORIGIN_RECURRING
