from factdesk.extensions import db


class NotificationWatermark(db.Model):
    """Per-user 'read up to' mark. No row means every verdict is unread."""
    __tablename__ = 'notification_watermarks'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    last_read_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'last_read_at': self.last_read_at.isoformat() if self.last_read_at else None,
        }
