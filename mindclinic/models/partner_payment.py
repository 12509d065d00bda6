"""
Partner (Psique) payment ledger.
One row per month, optionally scoped to a professional.
"""
from mindclinic.extensions import db
from .base import TimestampMixin


class PartnerPayment(db.Model, TimestampMixin):
    __tablename__ = 'partner_payments'
    __table_args__ = (
        db.UniqueConstraint('month', 'professional', name='uq_partner_payments_month_professional'),
    )

    id = db.Column(db.Integer, primary_key=True)
    month = db.Column(db.String(7), nullable=False, index=True)  # YYYY-MM
    # '' is the clinic-wide entry, never NULL
    professional = db.Column(db.String(100), nullable=False, default='', server_default='', index=True)
    doc_key = db.Column(db.String(150), nullable=False, index=True)  # legacy "month_Professional" key

    total_amount = db.Column(db.Float, nullable=False, default=0)  # frozen when marked
    is_paid = db.Column(db.Boolean, default=False, nullable=False)
    paid_date = db.Column(db.String(10))  # YYYY-MM-DD

    # Bumped on every write, used for compare-and-set
    version = db.Column(db.Integer, nullable=False, default=1)

    def to_dict(self):
        return {
            'id': self.id,
            'month': self.month,
            'professional': self.professional or None,
            'doc_key': self.doc_key,
            'total_amount': self.total_amount,
            'is_paid': bool(self.is_paid),
            'paid_date': self.paid_date,
            'version': self.version,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<PartnerPayment {self.doc_key} paid={self.is_paid}>"
