from datetime import datetime, timezone
from factdesk.extensions import db
from factdesk.models.enums import Role, enum_column


class User(db.Model):
    """Principal record. Credentials are verified upstream; this row only anchors foreign keys."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    role = db.Column(enum_column(Role, 'user_role'), nullable=False, default=Role.USER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role.value,
            'is_active': self.is_active,
        }
