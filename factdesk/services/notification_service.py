import logging
from datetime import datetime, timezone
from factdesk.errors import Forbidden, NotFound
from factdesk.extensions import db
from factdesk.models.claim import Claim
from factdesk.models.notification import NotificationWatermark
from factdesk.models.user import User
from factdesk.models.verdict import Verdict
from factdesk.utils.transaction import atomic
from factdesk.utils.upsert import upsert

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class NotificationService:
    """
    Unread verdicts are derived: a verdict on one of the user's claims is unread
    when it was created after the user's watermark. Reading anything moves the
    watermark to now, which clears everything older in one step.
    """

    def get_watermark(self, user_id):
        row = NotificationWatermark.query.filter_by(user_id=user_id).first()
        if not row:
            return EPOCH
        # SQLite hands back naive datetimes
        if row.last_read_at.tzinfo is None:
            return row.last_read_at.replace(tzinfo=timezone.utc)
        return row.last_read_at

    def _unread_query(self, user_id):
        return db.session.query(Verdict, Claim).join(
            Claim, Claim.id == Verdict.claim_id
        ).outerjoin(
            NotificationWatermark, NotificationWatermark.user_id == Claim.user_id
        ).filter(
            Claim.user_id == user_id,
            Verdict.is_final.is_(True),
            Verdict.created_at > db.func.coalesce(NotificationWatermark.last_read_at, EPOCH),
        )

    def get_unread_verdicts(self, user_id, limit=50):
        rows = self._unread_query(user_id).order_by(
            Verdict.created_at.desc(), Verdict.id.desc()
        ).limit(limit).all()

        return [
            {
                **verdict.to_dict(),
                'claim_title': claim.title,
                'type': 'verdict',
                'is_read': False,
            }
            for verdict, claim in rows
        ]

    def get_unread_count(self, user_id):
        return self._unread_query(user_id).count()

    def mark_read(self, user_id, verdict_id=None):
        """
        Advance the user's watermark to now.
        With a verdict_id, the verdict must be on one of the caller's claims.
        """
        if verdict_id is not None:
            row = db.session.query(Verdict.id, Claim.user_id).join(
                Claim, Claim.id == Verdict.claim_id
            ).filter(Verdict.id == verdict_id).first()
            if not row:
                raise NotFound(f"Verdict {verdict_id} not found")
            if row.user_id != user_id:
                raise Forbidden(f"Verdict {verdict_id} does not belong to user {user_id}")
        elif not db.session.get(User, user_id):
            raise NotFound(f"User {user_id} not found")

        now = datetime.now(timezone.utc)
        with atomic():
            upsert(
                NotificationWatermark,
                {'user_id': user_id, 'last_read_at': now},
                conflict_cols=['user_id'],
                update_cols=['last_read_at'],
            )
        logger.info(f"User {user_id} read verdicts up to {now.isoformat()}")
        return now

    def mark_all_read(self, user_id):
        return self.mark_read(user_id)
