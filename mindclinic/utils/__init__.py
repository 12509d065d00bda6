from .balance_calculator import compute_balance, is_overdue, pending_debts
from .partner_share import PSIQUE_RATE, compute_month_share, ledger_doc_key
from .agenda_stats import compute_agenda_stats, is_completed_for_stats
from .income_projection import project_income, build_projection
from .recurrence import generate_recurrence_dates
from .dates import clinic_now, calculate_age, is_minor

__all__ = [
    # Balance
    "compute_balance",
    "is_overdue",
    "pending_debts",
    # Psique revenue share
    "PSIQUE_RATE",
    "compute_month_share",
    "ledger_doc_key",
    # Statistics / projection
    "compute_agenda_stats",
    "is_completed_for_stats",
    "project_income",
    "build_projection",
    # Scheduling
    "generate_recurrence_dates",
    # Dates
    "clinic_now",
    "calculate_age",
    "is_minor",
]
