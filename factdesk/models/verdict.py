from datetime import datetime, timezone
from sqlalchemy import text
from factdesk.extensions import db
from factdesk.models.enums import ApprovalStatus, Responsibility, VerdictKind, enum_column


class Verdict(db.Model):
    """Final adjudication. Rows are written once and never updated."""
    __tablename__ = 'verdicts'

    id = db.Column(db.Integer, primary_key=True)
    claim_id = db.Column(db.Integer, db.ForeignKey('claims.id'), nullable=False)
    fact_checker_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    verdict = db.Column(enum_column(VerdictKind, 'verdict_kind'), nullable=False)
    explanation = db.Column(db.Text, nullable=False)
    sources_json = db.Column(db.JSON, nullable=False, default=list)
    ai_suggestion_id = db.Column(db.Integer, db.ForeignKey('ai_suggestions.id'), nullable=True)
    responsibility = db.Column(enum_column(Responsibility, 'verdict_responsibility'), nullable=False)
    is_final = db.Column(db.Boolean, nullable=False, default=True)
    approval_status = db.Column(
        enum_column(ApprovalStatus, 'verdict_approval_status'),
        nullable=False,
        default=ApprovalStatus.APPROVED,
    )
    time_spent = db.Column(db.Integer, nullable=False, default=0)  # minutes
    # Microsecond precision matters: unread state compares against this column.
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    claim = db.relationship('Claim', foreign_keys=[claim_id])
    fact_checker = db.relationship('User', foreign_keys=[fact_checker_id])

    __table_args__ = (
        db.Index(
            'uq_verdicts_one_final_per_claim', 'claim_id',
            unique=True,
            postgresql_where=text('is_final'),
            sqlite_where=text('is_final = 1'),
        ),
        db.Index('ix_verdicts_fact_checker', 'fact_checker_id', 'created_at'),
        db.Index('ix_verdicts_created', 'created_at'),
        db.CheckConstraint('time_spent >= 0', name='ck_verdicts_time_spent'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'claim_id': self.claim_id,
            'fact_checker_id': self.fact_checker_id,
            'verdict': self.verdict.value,
            'explanation': self.explanation,
            'sources': list(self.sources_json or []),
            'ai_suggestion_id': self.ai_suggestion_id,
            'responsibility': self.responsibility.value,
            'is_final': self.is_final,
            'approval_status': self.approval_status.value,
            'time_spent': self.time_spent,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
