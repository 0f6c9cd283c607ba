from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch
from factdesk import feature_flags
from factdesk.jobs.scheduled import _ai_backlog_job, _points_reconcile_job, _trending_refresh_job, register_jobs
from factdesk.models.enums import ClaimStatus
from factdesk.models.points import UserPointsSummary


class TestRegisterJobs:
    def test_registers_all_jobs(self, app):
        scheduler = MagicMock()
        register_jobs(scheduler, app)

        jobs = {c.kwargs['id']: c.kwargs for c in scheduler.add_job.call_args_list}
        assert set(jobs) == {'trending_refresh', 'ai_backlog_sweep', 'points_reconcile'}
        assert jobs['points_reconcile']['trigger'] == 'cron'
        assert jobs['points_reconcile']['timezone'] == 'UTC'
        assert all(j['replace_existing'] for j in jobs.values())


class TestJobBodies:
    def test_trending_refresh(self, app, make_claim, db_session):
        claim = make_claim(status=ClaimStatus.HUMAN_APPROVED, submission_count=5,
                           resolved_at=datetime.now(timezone.utc))
        _trending_refresh_job(app)
        db_session.refresh(claim)
        assert claim.is_trending is True

    def test_backlog_skipped_when_flag_off(self, app, make_claim):
        make_claim(created_at=datetime.now(timezone.utc) - timedelta(hours=2))
        with patch('factdesk.services.suggestion_service.SuggestionService') as service_cls:
            _ai_backlog_job(app)
        service_cls.assert_not_called()

    def test_backlog_requests_stale_claims(self, app, make_claim):
        stale = make_claim('stale', created_at=datetime.now(timezone.utc) - timedelta(hours=2))
        make_claim('fresh')
        feature_flags.set_flag('ai_suggestions', True)
        try:
            with patch('factdesk.services.suggestion_service.SuggestionService') as service_cls:
                _ai_backlog_job(app)
        finally:
            feature_flags.set_flag('ai_suggestions', False)
        service_cls.return_value.request_suggestion.assert_called_once_with(stale.id)

    def test_points_reconcile(self, app, user, db_session):
        from factdesk.services.points_service import PointsService
        PointsService().award_points(user.id, 5, 'BONUS')
        UserPointsSummary.query.filter_by(user_id=user.id).update({'total_points': 1})
        db_session.commit()

        _points_reconcile_job(app)
        assert UserPointsSummary.query.filter_by(user_id=user.id).one().total_points == 15
