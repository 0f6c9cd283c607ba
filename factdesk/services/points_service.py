import logging
from datetime import datetime
from zoneinfo import ZoneInfo
from flask import current_app
from factdesk.errors import NotFound, ValidationError
from factdesk.extensions import db
from factdesk.models.enums import Role
from factdesk.models.points import PointsLedgerEntry, UserPointsSummary
from factdesk.models.user import User
from factdesk.utils.transaction import atomic
from factdesk.utils.upsert import insert_ignore

logger = logging.getLogger(__name__)

DEFAULT_POINTS = {
    'CLAIM_SUBMISSION': 10,
    'FIRST_CLAIM': 50,
    'VERDICT_SUBMITTED': 20,
    'VERDICT_RECEIVED': 15,
    'DAILY_LOGIN': 5,
    'STREAK_BONUS_7_DAYS': 25,
    'REGISTRATION_BONUS': 10,
}

STREAK_BONUS_EVERY = 7


class PointsService:
    def __init__(self, app_config=None):
        config = app_config or current_app.config
        self.values = {**DEFAULT_POINTS, **(config.get('POINT_VALUES') or {})}
        self.tz = ZoneInfo(config.get('POINTS_TIMEZONE', 'UTC'))

    def today(self):
        """Current calendar day in the configured server time zone."""
        return datetime.now(self.tz).date()

    # -- ledger primitives (no commit; callers own the transaction) --

    def ensure_summary(self, user_id):
        """
        Return the user's summary row, creating it on first touch.
        Creation also books the registration bonus. A concurrent first touch
        loses the insert quietly and reads the winner's row.
        """
        summary = UserPointsSummary.query.filter_by(user_id=user_id).first()
        if summary:
            return summary

        if not db.session.get(User, user_id):
            raise NotFound(f"User {user_id} not found")

        bonus = self.values['REGISTRATION_BONUS']
        created = insert_ignore(
            UserPointsSummary,
            {'user_id': user_id, 'total_points': bonus, 'current_streak': 0, 'longest_streak': 0},
            ['user_id'],
        )
        if created and bonus:
            db.session.add(PointsLedgerEntry(
                user_id=user_id,
                points=bonus,
                activity_type='REGISTRATION_BONUS',
                description='Welcome bonus',
            ))
            logger.info(f"Initialized points for user {user_id} (+{bonus} registration bonus)")

        return UserPointsSummary.query.filter_by(user_id=user_id).one()

    def credit(self, user_id, amount, activity_type, description=''):
        """Append a ledger row and bump the cached total with one SQL increment."""
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError(f"Point amount must be an integer, got {amount!r}")
        if not activity_type or not str(activity_type).strip():
            raise ValidationError('activity_type is required')

        summary = self.ensure_summary(user_id)
        entry = PointsLedgerEntry(
            user_id=user_id,
            points=amount,
            activity_type=str(activity_type).strip().upper(),
            description=description or '',
        )
        db.session.add(entry)
        UserPointsSummary.query.filter_by(user_id=user_id).update(
            {'total_points': UserPointsSummary.total_points + amount},
            synchronize_session=False,
        )
        db.session.expire(summary)
        return entry

    # -- public operations --

    def award_points(self, user_id, amount, activity_type, description=''):
        """Award points in their own transaction. Deduplication is the caller's job."""
        with atomic():
            entry = self.credit(user_id, amount, activity_type, description)
        logger.info(f"Awarded {amount} points to user {user_id} for {entry.activity_type}")
        return entry

    def award_daily_login(self, user_id, today=None):
        """
        Daily login with calendar-day streaks.
        Same day: nothing. Next day: streak + 1, with the 7-day bonus on every
        multiple of seven. Any bigger gap, or no history: streak restarts at 1.
        """
        today = today or self.today()

        with atomic():
            summary = self.ensure_summary(user_id)
            last = summary.last_activity_date

            if last is not None and today <= last:
                return self._login_result(summary, awarded=0, bonus=0)

            if last is not None and (today - last).days == 1:
                new_streak = summary.current_streak + 1
            else:
                if last is not None:
                    logger.info(f"User {user_id} streak broken after {(today - last).days} day gap")
                new_streak = 1
            longest = max(summary.longest_streak, new_streak)

            # Compare-and-set on the day we read, so concurrent logins count once.
            last_filter = (
                UserPointsSummary.last_activity_date.is_(None) if last is None
                else UserPointsSummary.last_activity_date == last
            )
            updated = UserPointsSummary.query.filter(
                UserPointsSummary.user_id == user_id, last_filter,
            ).update({
                'current_streak': new_streak,
                'longest_streak': longest,
                'last_activity_date': today,
            }, synchronize_session=False)

            if updated == 0:
                db.session.expire(summary)
                logger.info(f"Daily login for user {user_id} already counted for {today}")
                return self._login_result(summary, awarded=0, bonus=0)

            daily = self.values['DAILY_LOGIN']
            self.credit(user_id, daily, 'DAILY_LOGIN', 'Daily login')

            bonus = 0
            if new_streak % STREAK_BONUS_EVERY == 0:
                bonus = self.values['STREAK_BONUS_7_DAYS']
                self.credit(user_id, bonus, 'STREAK_BONUS', f"{new_streak}-day streak")

        logger.info(f"Daily login for user {user_id}: streak {new_streak}, +{daily + bonus} points")
        return self._login_result(summary, awarded=daily + bonus, bonus=bonus)

    def _login_result(self, summary, awarded, bonus):
        return {
            'points_awarded': awarded,
            'streak_bonus': bonus,
            'total_points': summary.total_points,
            'current_streak': summary.current_streak,
            'longest_streak': summary.longest_streak,
            'last_activity_date': summary.last_activity_date.isoformat() if summary.last_activity_date else None,
        }

    def get_user_points(self, user_id):
        with atomic():
            summary = self.ensure_summary(user_id)
        data = summary.to_dict()
        data['rank'] = self.get_user_rank(user_id)
        return data

    def get_points_history(self, user_id, limit=50):
        return PointsLedgerEntry.query.filter_by(user_id=user_id).order_by(
            PointsLedgerEntry.created_at.desc(), PointsLedgerEntry.id.desc()
        ).limit(limit).all()

    def _leaderboard_query(self):
        return db.session.query(UserPointsSummary, User).join(
            User, User.id == UserPointsSummary.user_id
        ).filter(
            User.role == Role.USER,
            User.is_active.is_(True),
        )

    def get_leaderboard(self, limit=100):
        """Top regular users by total points, streak as tiebreaker."""
        rows = self._leaderboard_query().order_by(
            UserPointsSummary.total_points.desc(),
            UserPointsSummary.current_streak.desc(),
            User.id.asc(),
        ).limit(limit).all()

        return [
            {
                'position': position,
                'user_id': user.id,
                'username': user.username,
                'total_points': summary.total_points,
                'current_streak': summary.current_streak,
                'longest_streak': summary.longest_streak,
            }
            for position, (summary, user) in enumerate(rows, start=1)
        ]

    def get_user_rank(self, user_id):
        """1-based leaderboard position, or None for users not on the leaderboard."""
        mine = self._leaderboard_query().filter(UserPointsSummary.user_id == user_id).first()
        if not mine:
            return None
        summary, _ = mine
        ahead = self._leaderboard_query().filter(
            db.or_(
                UserPointsSummary.total_points > summary.total_points,
                db.and_(
                    UserPointsSummary.total_points == summary.total_points,
                    UserPointsSummary.current_streak > summary.current_streak,
                ),
                db.and_(
                    UserPointsSummary.total_points == summary.total_points,
                    UserPointsSummary.current_streak == summary.current_streak,
                    User.id < user_id,
                ),
            )
        ).count()
        return ahead + 1

    def get_points_statistics(self):
        """Aggregate figures over regular, active users."""
        row = db.session.query(
            db.func.count(UserPointsSummary.id),
            db.func.coalesce(db.func.sum(UserPointsSummary.total_points), 0),
            db.func.avg(UserPointsSummary.total_points),
            db.func.max(UserPointsSummary.total_points),
            db.func.count(db.case((UserPointsSummary.current_streak >= 7, 1))),
            db.func.count(db.case((UserPointsSummary.current_streak >= 30, 1))),
        ).join(
            User, User.id == UserPointsSummary.user_id
        ).filter(
            User.role == Role.USER,
            User.is_active.is_(True),
        ).one()

        return {
            'total_users': int(row[0]),
            'total_points_awarded': int(row[1]),
            'average_points': round(float(row[2]), 1) if row[2] is not None else 0.0,
            'max_points': int(row[3] or 0),
            'users_with_7_day_streak': int(row[4]),
            'users_with_30_day_streak': int(row[5]),
        }

    def reset_user_points(self, user_id, reason='Admin reset'):
        """Zero a user's total and streak. A compensating entry keeps the ledger summing to the total."""
        with atomic():
            summary = self.ensure_summary(user_id)
            total = summary.total_points
            if total:
                self.credit(user_id, -total, 'MANUAL_RESET', reason)
            UserPointsSummary.query.filter_by(user_id=user_id).update(
                {'current_streak': 0}, synchronize_session=False,
            )
            db.session.expire(summary)
        logger.info(f"Reset points for user {user_id} ({reason})")
        return summary

    def recompute_summary(self, user_id):
        """Rebuild the cached total from the ledger. Returns the drift that was corrected."""
        with atomic():
            summary = self.ensure_summary(user_id)
            ledger_total = db.session.query(
                db.func.coalesce(db.func.sum(PointsLedgerEntry.points), 0)
            ).filter(PointsLedgerEntry.user_id == user_id).scalar()
            drift = int(ledger_total) - summary.total_points
            if drift:
                logger.warning(f"Points drift of {drift} for user {user_id}; rewriting total")
                UserPointsSummary.query.filter_by(user_id=user_id).update(
                    {'total_points': int(ledger_total)}, synchronize_session=False,
                )
                db.session.expire(summary)
        return drift

    def reconcile_all(self):
        """Materialize every summary from the ledger (scheduled)."""
        user_ids = [row[0] for row in db.session.query(UserPointsSummary.user_id).all()]
        corrected = sum(1 for uid in user_ids if self.recompute_summary(uid))
        logger.info(f"Reconciled {len(user_ids)} point summaries, {corrected} corrected")
        return corrected
