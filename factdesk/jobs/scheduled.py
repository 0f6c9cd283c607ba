import logging
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)


def _trending_refresh_job(app):
    with app.app_context():
        logger.info("[Job] Trending refresh")
        from factdesk.services.trending_service import TrendingService
        result = TrendingService().refresh_scores()
        logger.info(f"[Job] Trending refresh: {result['trending']} of {result['scored']} claims trending")


def _ai_backlog_job(app):
    """Send claims the AI never picked up (lost dispatch, restart) back to the collaborator."""
    with app.app_context():
        from factdesk import feature_flags
        if not feature_flags.is_enabled('ai_suggestions'):
            return
        from factdesk.services.claim_service import ClaimService
        from factdesk.services.suggestion_service import SuggestionService

        minutes = app.config.get('AI_BACKLOG_MINUTES', 30)
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=minutes)
        stale = ClaimService().get_stale_pending(cutoff)
        logger.info(f"[Job] AI backlog sweep: {len(stale)} claims pending > {minutes}m")

        service = SuggestionService()
        for claim in stale:
            try:
                service.request_suggestion(claim.id)
            except Exception as e:
                logger.error(f"[Job] AI backlog: claim {claim.id} failed: {e}", exc_info=True)


def _points_reconcile_job(app):
    with app.app_context():
        logger.info("[Job] Points reconcile")
        from factdesk.services.points_service import PointsService
        corrected = PointsService().reconcile_all()
        logger.info(f"[Job] Points reconcile: {corrected} summaries corrected")


def _upsert_job(scheduler, **kwargs):
    scheduler.add_job(replace_existing=True, **kwargs)


def register_jobs(scheduler, app):
    """Register all scheduled jobs."""
    _upsert_job(
        scheduler,
        id='trending_refresh',
        func=_trending_refresh_job,
        trigger='interval',
        args=[app],
        minutes=30,
        misfire_grace_time=600,
        coalesce=True,
        max_instances=1,
    )

    _upsert_job(
        scheduler,
        id='ai_backlog_sweep',
        func=_ai_backlog_job,
        trigger='interval',
        args=[app],
        minutes=15,
        misfire_grace_time=600,
        coalesce=True,
        max_instances=1,
    )

    _upsert_job(
        scheduler,
        id='points_reconcile',
        func=_points_reconcile_job,
        trigger='cron',
        args=[app],
        hour=3,
        minute=15,
        timezone=app.config.get('POINTS_TIMEZONE', 'UTC'),
        misfire_grace_time=3600,
        coalesce=True,
        max_instances=1,
    )

    logger.info("Registered scheduled jobs: trending_refresh, ai_backlog_sweep, points_reconcile")
