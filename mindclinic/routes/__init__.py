from .health import health_bp
from .patient import patient_bp
from .appointment import appointment_bp
from .payment import payment_bp
from .psique import psique_bp
from .statistics import statistics_bp
from .billing import billing_bp
from .notes import notes_bp

__all__ = ['health_bp', 'patient_bp', 'appointment_bp', 'payment_bp', 'psique_bp', 'statistics_bp', 'billing_bp', 'notes_bp']
