from .partner_ledger_service import (
    load_ledger,
    get_month_share,
    set_paid,
    mark_month_paid,
    get_ledger_history,
)

from .appointment_service import (
    create_appointment,
    create_recurring_series,
    update_appointment,
    delete_appointment,
    delete_series,
    list_appointments,
)

from .payment_service import (
    record_payment,
    update_payment,
    delete_payment,
    get_patient_balance,
)

from .billing_service import (
    request_batch_invoice,
    get_billing_status,
    send_billing_request,
    complete_billing_request,
)

from .clinical_note_service import (
    get_note,
    get_appointment_note,
    list_patient_notes,
    save_note,
    add_task,
    complete_task,
    get_pending_tasks,
)

__all__ = [
    # Psique ledger
    "load_ledger",
    "get_month_share",
    "set_paid",
    "mark_month_paid",
    "get_ledger_history",
    # Scheduling
    "create_appointment",
    "create_recurring_series",
    "update_appointment",
    "delete_appointment",
    "delete_series",
    "list_appointments",
    # Payments
    "record_payment",
    "update_payment",
    "delete_payment",
    "get_patient_balance",
    # Invoicing
    "request_batch_invoice",
    "get_billing_status",
    "send_billing_request",
    "complete_billing_request",
    # Clinical notes
    "get_note",
    "get_appointment_note",
    "list_patient_notes",
    "save_note",
    "add_task",
    "complete_task",
    "get_pending_tasks",
]
