from .patient import Patient
from .appointment import Appointment
from .payment import Payment
from .partner_payment import PartnerPayment
from .billing_request import BillingRequest
from .clinical_note import ClinicalNote
from .audit_log import AuditLog

__all__ = ["Patient", "Appointment", "Payment", "PartnerPayment", "BillingRequest", "ClinicalNote", "AuditLog"]
