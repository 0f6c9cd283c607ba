from datetime import datetime, timezone
from sqlalchemy import func
from factdesk.extensions import db
from factdesk.models.enums import Category, ClaimStatus, Priority, enum_column


class Claim(db.Model):
    __tablename__ = 'claims'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    title = db.Column(db.String(128), nullable=False)
    text = db.Column(db.Text, nullable=False)
    text_hash = db.Column(db.String(64), nullable=False)
    category = db.Column(enum_column(Category, 'claim_category'), nullable=False)
    media_url = db.Column(db.String(1024), nullable=True)
    media_type = db.Column(db.String(16), nullable=True)  # image | video
    source_link = db.Column(db.String(1024), nullable=True)
    status = db.Column(enum_column(ClaimStatus, 'claim_status'), nullable=False, default=ClaimStatus.PENDING)
    priority = db.Column(enum_column(Priority, 'claim_priority'), nullable=False, default=Priority.MEDIUM)
    submission_count = db.Column(db.Integer, nullable=False, default=1)
    duplicate_of_id = db.Column(db.Integer, db.ForeignKey('claims.id'), nullable=True)
    is_trending = db.Column(db.Boolean, nullable=False, default=False)
    trending_score = db.Column(db.Float, nullable=True)
    ai_suggestion_id = db.Column(
        db.Integer, db.ForeignKey('ai_suggestions.id', use_alter=True, name='fk_claims_ai_suggestion'),
        nullable=True,
    )
    final_verdict_id = db.Column(
        db.Integer, db.ForeignKey('verdicts.id', use_alter=True, name='fk_claims_final_verdict'),
        nullable=True,
    )
    assigned_fact_checker_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    rejection_reason = db.Column(db.String(512), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=func.now())

    submitter = db.relationship('User', foreign_keys=[user_id])
    suggestion = db.relationship('AISuggestion', foreign_keys=[ai_suggestion_id], post_update=True)
    final_verdict = db.relationship('Verdict', foreign_keys=[final_verdict_id], post_update=True)

    __table_args__ = (
        db.Index('ix_claims_status_priority', 'status', 'priority', 'created_at'),
        db.Index('ix_claims_user', 'user_id', 'created_at'),
        db.Index('ix_claims_text_hash', 'text_hash'),
        db.Index('ix_claims_trending', 'is_trending', 'trending_score'),
    )

    @property
    def is_terminal(self):
        return self.status in (ClaimStatus.HUMAN_APPROVED, ClaimStatus.REJECTED)

    def to_dict(self, include_text=True):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'category': self.category.value,
            'status': self.status.value,
            'priority': self.priority.value,
            'submission_count': self.submission_count,
            'duplicate_of_id': self.duplicate_of_id,
            'is_trending': self.is_trending,
            'trending_score': self.trending_score,
            'media_url': self.media_url,
            'media_type': self.media_type,
            'source_link': self.source_link,
            'ai_suggestion_id': self.ai_suggestion_id,
            'final_verdict_id': self.final_verdict_id,
            'assigned_fact_checker_id': self.assigned_fact_checker_id,
            'rejection_reason': self.rejection_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'resolved_at': self.resolved_at.isoformat() if self.resolved_at else None,
        }
        if include_text:
            data['text'] = self.text
        return data
