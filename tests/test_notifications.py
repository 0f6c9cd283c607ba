import pytest
from datetime import datetime, timedelta, timezone
from factdesk.errors import Forbidden, NotFound
from factdesk.models.enums import ClaimStatus
from factdesk.models.notification import NotificationWatermark
from factdesk.services.notification_service import NotificationService
from factdesk.services.verdict_service import VerdictService


@pytest.fixture
def notifications(db_session):
    return NotificationService()


@pytest.fixture
def resolve(fact_checker):
    def _resolve(claim, verdict='true'):
        return VerdictService().submit_verdict(fact_checker.id, claim.id, verdict, 'Checked against records.')
    return _resolve


class TestUnreadVerdicts:
    def test_only_own_claims(self, notifications, make_claim, resolve, user, other_user):
        mine = resolve(make_claim('mine'))
        resolve(make_claim('theirs', owner=other_user))

        unread = notifications.get_unread_verdicts(user.id)
        assert [v['id'] for v in unread] == [mine.id]
        assert unread[0]['claim_title'] == 'mine'
        assert unread[0]['is_read'] is False
        assert notifications.get_unread_count(other_user.id) == 1

    def test_newest_first(self, notifications, make_claim, resolve, user):
        first = resolve(make_claim('first'))
        second = resolve(make_claim('second'))
        assert [v['id'] for v in notifications.get_unread_verdicts(user.id)] == [second.id, first.id]

    def test_empty_after_mark_all_read(self, notifications, make_claim, resolve, user):
        resolve(make_claim('a'))
        resolve(make_claim('b'))
        notifications.mark_all_read(user.id)
        assert notifications.get_unread_verdicts(user.id) == []
        assert notifications.get_unread_count(user.id) == 0

    def test_new_verdict_after_watermark_is_unread(self, notifications, make_claim, resolve, user):
        resolve(make_claim('old'))
        notifications.mark_all_read(user.id)
        fresh = resolve(make_claim('new'))
        assert [v['id'] for v in notifications.get_unread_verdicts(user.id)] == [fresh.id]

    def test_unresolved_claims_are_not_notifications(self, notifications, make_claim, user):
        make_claim('still pending')
        assert notifications.get_unread_count(user.id) == 0


class TestMarkRead:
    def test_marking_one_clears_older(self, notifications, make_claim, resolve, user):
        resolve(make_claim('a'))
        newest = resolve(make_claim('b'))
        notifications.mark_read(user.id, newest.id)
        assert notifications.get_unread_count(user.id) == 0

    def test_watermark_is_single_row(self, notifications, make_claim, resolve, user, db_session):
        verdict = resolve(make_claim())
        first = notifications.mark_read(user.id, verdict.id)
        second = notifications.mark_all_read(user.id)
        assert second >= first
        assert NotificationWatermark.query.filter_by(user_id=user.id).count() == 1
        assert notifications.get_watermark(user.id) > datetime.now(timezone.utc) - timedelta(minutes=1)

    def test_default_watermark_is_epoch(self, notifications, user):
        assert notifications.get_watermark(user.id).year == 1970

    def test_other_users_verdict_forbidden(self, notifications, make_claim, resolve, user, other_user):
        theirs = resolve(make_claim(owner=other_user))
        with pytest.raises(Forbidden):
            notifications.mark_read(user.id, theirs.id)
        assert NotificationWatermark.query.filter_by(user_id=user.id).count() == 0

    def test_unknown_verdict(self, notifications, user):
        with pytest.raises(NotFound):
            notifications.mark_read(user.id, 12345)

    def test_unknown_user(self, notifications):
        with pytest.raises(NotFound):
            notifications.mark_all_read(12345)
