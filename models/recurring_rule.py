from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class RecurringRule:
    id: Optional[int]
    name: str
    type: str               # 'income' | 'expense'
    amount: float
    category: str
    frequency: str          # 'daily' | 'weekly' | 'monthly' | 'yearly' | 'custom'
    start_date: date
    next_due_date: date
    is_active: bool = True
    custom_interval_days: int = 1                # custom only
    weekdays: Optional[tuple[int, ...]] = None   # weekly only, 1=Mon..7=Sun
    day_of_month: Optional[int] = None           # monthly only, 1-31, or 32 = last day
    end_date: Optional[date] = None              # inclusive
    last_generated_date: Optional[date] = None
    note: str = ""
