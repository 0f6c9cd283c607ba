from datetime import datetime, timezone
from factdesk.extensions import db


class PointsLedgerEntry(db.Model):
    __tablename__ = 'points_ledger'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    points = db.Column(db.Integer, nullable=False)
    activity_type = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(512), nullable=False, default='')
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        db.Index('ix_points_ledger_user_date', 'user_id', 'created_at'),
        db.Index('ix_points_ledger_activity', 'user_id', 'activity_type'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'points': self.points,
            'activity_type': self.activity_type,
            'description': self.description,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class UserPointsSummary(db.Model):
    """Cached rollup of the ledger. total_points is only ever changed by SQL increments."""
    __tablename__ = 'user_points_summaries'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    total_points = db.Column(db.Integer, nullable=False, default=0)
    current_streak = db.Column(db.Integer, nullable=False, default=0)
    longest_streak = db.Column(db.Integer, nullable=False, default=0)
    last_activity_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    user = db.relationship('User')

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'total_points': self.total_points,
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'last_activity_date': self.last_activity_date.isoformat() if self.last_activity_date else None,
        }
