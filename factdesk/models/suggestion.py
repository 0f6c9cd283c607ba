from datetime import datetime, timezone
from factdesk.extensions import db
from factdesk.models.enums import VerdictKind, enum_column


class AISuggestion(db.Model):
    __tablename__ = 'ai_suggestions'

    id = db.Column(db.Integer, primary_key=True)
    claim_id = db.Column(db.Integer, db.ForeignKey('claims.id'), nullable=False, unique=True)
    verdict = db.Column(enum_column(VerdictKind, 'suggestion_verdict'), nullable=False)
    confidence = db.Column(db.Float, nullable=False)
    explanation = db.Column(db.Text, nullable=False, default='')
    sources_json = db.Column(db.JSON, nullable=False, default=list)
    model_name = db.Column(db.String(64), nullable=True)
    edited_by_human = db.Column(db.Boolean, nullable=False, default=False)
    edited_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    edited_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.CheckConstraint('confidence >= 0 AND confidence <= 1', name='ck_ai_suggestions_confidence'),
    )

    def content(self):
        return {
            'verdict': self.verdict.value,
            'explanation': self.explanation,
            'sources': list(self.sources_json or []),
        }

    def to_dict(self):
        return {
            'id': self.id,
            'claim_id': self.claim_id,
            **self.content(),
            'confidence': self.confidence,
            'model_name': self.model_name,
            'edited_by_human': self.edited_by_human,
            'edited_by_id': self.edited_by_id,
            'edited_at': self.edited_at.isoformat() if self.edited_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class AISuggestionRevision(db.Model):
    """Snapshot of suggestion content taken right before a human edit overwrites it."""
    __tablename__ = 'ai_suggestion_revisions'

    id = db.Column(db.Integer, primary_key=True)
    suggestion_id = db.Column(db.Integer, db.ForeignKey('ai_suggestions.id'), nullable=False)
    verdict = db.Column(enum_column(VerdictKind, 'revision_verdict'), nullable=False)
    confidence = db.Column(db.Float, nullable=False)
    explanation = db.Column(db.Text, nullable=False, default='')
    sources_json = db.Column(db.JSON, nullable=False, default=list)
    model_name = db.Column(db.String(64), nullable=True)
    replaced_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.Index('ix_suggestion_revisions_suggestion', 'suggestion_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'suggestion_id': self.suggestion_id,
            'verdict': self.verdict.value,
            'confidence': self.confidence,
            'explanation': self.explanation,
            'sources': list(self.sources_json or []),
            'model_name': self.model_name,
            'replaced_by_id': self.replaced_by_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
