APP_NAME = "Pocket Budget"
APP_WIDTH = 1000
APP_HEIGHT = 640
DB_FILE = "pocket_budget.db"
DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
UPCOMING_REMINDER_DAYS = 7
PROJECTION_DAYS = 30

# Recurrence
LAST_DAY_OF_MONTH = 32          # day_of_month sentinel
MAX_CATCHUP_ITERATIONS = 5000   # per rule, per generation pass
LAST_GENERATION_KEY = "last_recurring_generation"

ORIGIN_MANUAL = "manual"
ORIGIN_RECURRING = "recurring"

TRANSACTION_TYPES = ["income", "expense"]
FREQUENCIES = ["daily", "weekly", "monthly", "yearly", "custom"]
DAYS_OF_WEEK = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]  # ISO 1..7

EXPENSE_CATEGORIES = [
    "food", "transport", "shopping", "entertainment",
    "bills", "health", "education", "other",
]
INCOME_CATEGORIES = [
    "salary", "freelance", "business", "investment",
    "gift", "refund", "other",
]
CATEGORIES_BY_TYPE = {
    "expense": EXPENSE_CATEGORIES,
    "income": INCOME_CATEGORIES,
}

SEVERITY_COLORS = {
    "error":   "#F44336",
    "warning": "#FF9800",
    "info":    "#2196F3",
}
