import logging
import math
from datetime import datetime, timezone
from flask import current_app
from factdesk.extensions import db
from factdesk.models.claim import Claim
from factdesk.models.enums import ClaimStatus
from factdesk.utils.transaction import atomic

logger = logging.getLogger(__name__)


class TrendingService:
    def __init__(self, app_config=None):
        config = app_config or current_app.config
        self.half_life_hours = float(config.get('TRENDING_HALF_LIFE_HOURS', 24.0))
        self.threshold = float(config.get('TRENDING_THRESHOLD', 2.0))

    def get_trending_claims(self, limit=10):
        """
        Trending flag first, then score (nulls last), then duplicate count, then recency.
        Falls back to the most recent claims when nothing qualifies.
        """
        trending = Claim.query.filter(
            db.or_(Claim.is_trending.is_(True), Claim.submission_count > 1)
        ).order_by(
            Claim.is_trending.desc(),
            Claim.trending_score.is_(None),
            Claim.trending_score.desc(),
            Claim.submission_count.desc(),
            Claim.created_at.desc(),
            Claim.id.desc(),
        ).limit(limit).all()

        if trending:
            return trending, False

        recent = Claim.query.order_by(
            Claim.created_at.desc(), Claim.id.desc()
        ).limit(limit).all()
        return recent, True

    def score(self, claim, now):
        """submission_count decayed exponentially by hours since resolution."""
        reference = claim.resolved_at or claim.created_at
        if reference is None:
            return float(claim.submission_count or 1)
        # Handle both naive and aware datetimes
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=timezone.utc)
        hours_ago = max((now - reference).total_seconds() / 3600, 0.0)
        decay = math.exp(-math.log(2) * hours_ago / self.half_life_hours)
        return round((claim.submission_count or 1) * decay, 4)

    def refresh_scores(self, now=None):
        """Rescore adjudicated claims. Only human_approved claims are eligible."""
        now = now or datetime.now(timezone.utc)
        claims = Claim.query.filter(Claim.status == ClaimStatus.HUMAN_APPROVED).all()

        flagged = 0
        with atomic():
            for claim in claims:
                claim.trending_score = self.score(claim, now)
                claim.is_trending = claim.trending_score >= self.threshold
                flagged += int(claim.is_trending)

        logger.info(f"Trending refresh: scored {len(claims)} claims, {flagged} trending")
        return {'scored': len(claims), 'trending': flagged}
