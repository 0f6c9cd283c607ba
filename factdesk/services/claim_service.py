import logging
from datetime import datetime, timezone
from factdesk import feature_flags
from factdesk.errors import AlreadyFinalized, Conflict, Forbidden, NotFound, ValidationError
from factdesk.extensions import db
from factdesk.models.claim import Claim
from factdesk.models.enums import (
    Category, ClaimStatus, PRIORITY_RANK, Priority, REVIEW_QUEUE_STATUSES, Role,
    can_transition, parse_enum,
)
from factdesk.models.suggestion import AISuggestion
from factdesk.models.user import User
from factdesk.services.points_service import PointsService
from factdesk.services.verdict_service import VerdictService
from factdesk.utils.text import claim_fingerprint, normalize_whitespace, title_from_text
from factdesk.utils.transaction import atomic

logger = logging.getLogger(__name__)

MAX_CLAIM_CHARS = 5000
MEDIA_TYPES = ('image', 'video')


class ClaimService:
    """Owns the claim lifecycle. Every status change goes through transition() or a verdict path."""

    def __init__(self, points_service=None):
        self.points = points_service or PointsService()

    # -- transitions --

    def transition(self, claim, target, **fields):
        """
        Move a claim from its current status to `target`, if the transition table allows it.
        The UPDATE is conditional on the status we read, so a concurrent move makes this fail
        with Conflict instead of overwriting. Must run inside a transaction.
        """
        target = ClaimStatus(target)
        current = claim.status
        if not can_transition(current, target):
            if current == ClaimStatus.HUMAN_APPROVED:
                raise AlreadyFinalized(claim.id)
            raise Conflict(f"Claim {claim.id} cannot move from {current.value} to {target.value}")

        updated = Claim.query.filter(
            Claim.id == claim.id,
            Claim.status == current,
        ).update({'status': target, **fields}, synchronize_session=False)
        if updated == 0:
            raise Conflict(f"Claim {claim.id} changed status concurrently")

        db.session.expire(claim)
        logger.info(f"Claim {claim.id}: {current.value} -> {target.value}")

    # -- submission --

    def submit_claim(self, user_id, category, text, media_url=None, media_type=None,
                     source_link=None, priority=None):
        category = parse_enum(Category, category, 'category')
        priority = parse_enum(Priority, priority, 'priority') if priority else Priority.MEDIUM
        text = normalize_whitespace(text) if isinstance(text, str) else ''
        if not text:
            raise ValidationError('Claim text is required')
        if len(text) > MAX_CLAIM_CHARS:
            raise ValidationError(f'Claim text exceeds {MAX_CLAIM_CHARS} characters')
        if media_url:
            media_type = media_type or 'image'
            if media_type not in MEDIA_TYPES:
                raise ValidationError(f"Invalid media_type: {media_type!r}")
        else:
            media_type = None

        user = db.session.get(User, user_id)
        if not user:
            raise NotFound(f"User {user_id} not found")
        if not user.is_active:
            raise Forbidden(f"User {user_id} is deactivated")

        text_hash = claim_fingerprint(text)
        canonical = None
        if feature_flags.is_enabled('duplicate_detection'):
            canonical = Claim.query.filter(
                Claim.text_hash == text_hash,
                Claim.duplicate_of_id.is_(None),
                Claim.status != ClaimStatus.REJECTED,
            ).order_by(Claim.created_at.asc(), Claim.id.asc()).first()

        is_first_claim = Claim.query.filter_by(user_id=user_id).count() == 0

        with atomic():
            claim = Claim(
                user_id=user_id,
                title=title_from_text(text),
                text=text,
                text_hash=text_hash,
                category=category,
                media_url=media_url,
                media_type=media_type,
                source_link=source_link,
                status=ClaimStatus.PENDING,
                priority=priority,
                submission_count=1,
                duplicate_of_id=canonical.id if canonical else None,
            )
            db.session.add(claim)
            db.session.flush()

            if canonical:
                Claim.query.filter_by(id=canonical.id).update(
                    {'submission_count': Claim.submission_count + 1},
                    synchronize_session=False,
                )
                db.session.expire(canonical)

            values = self.points.values
            if is_first_claim:
                self.points.credit(user_id, values['FIRST_CLAIM'], 'FIRST_CLAIM', 'First claim submitted')
            else:
                self.points.credit(
                    user_id, values['CLAIM_SUBMISSION'], 'CLAIM_SUBMISSION', f"Submitted claim {claim.id}",
                )

        logger.info(
            f"Claim {claim.id} submitted by user {user_id} ({category.value})"
            + (f", duplicate of {canonical.id}" if canonical else '')
        )

        if feature_flags.is_enabled('ai_suggestions'):
            from factdesk.services.suggestion_service import dispatch_suggestion
            dispatch_suggestion(claim.id)

        return claim

    # -- admin --

    def _require_admin(self, admin_id):
        admin = db.session.get(User, admin_id)
        if not admin:
            raise NotFound(f"User {admin_id} not found")
        if admin.role != Role.ADMIN or not admin.is_active:
            raise Forbidden(f"User {admin_id} is not an admin")
        return admin

    def reject_claim(self, admin_id, claim_id, reason=None):
        """Force a non-terminal claim into rejected. No verdict is written."""
        self._require_admin(admin_id)
        claim = self.get_claim(claim_id)
        if claim.status == ClaimStatus.REJECTED:
            raise Conflict(f"Claim {claim_id} is already rejected")

        with atomic():
            self.transition(
                claim, ClaimStatus.REJECTED,
                rejection_reason=(reason or '')[:512] or None,
                resolved_at=datetime.now(timezone.utc),
            )
        return claim

    def set_priority(self, admin_id, claim_id, priority):
        self._require_admin(admin_id)
        priority = parse_enum(Priority, priority, 'priority')
        claim = self.get_claim(claim_id)
        if claim.is_terminal:
            raise Conflict(f"Claim {claim_id} is {claim.status.value}; priority is frozen")
        with atomic():
            claim.priority = priority
        logger.info(f"Claim {claim_id} priority set to {priority.value}")
        return claim

    def get_dashboard_stats(self, admin_id, since=None):
        """Headline counts for the admin dashboard. `since` limits total_claims to recent submissions."""
        self._require_admin(admin_id)
        claims = Claim.query
        if since is not None:
            claims = claims.filter(Claim.created_at >= since)
        return {
            'total_users': User.query.count(),
            'total_claims': claims.count(),
            'pending_claims': Claim.query.filter(Claim.status == ClaimStatus.PENDING).count(),
            'approved_claims': Claim.query.filter(Claim.status == ClaimStatus.HUMAN_APPROVED).count(),
            'active_fact_checkers': User.query.filter(
                User.role == Role.FACT_CHECKER, User.is_active.is_(True),
            ).count(),
        }

    # -- reads --

    def get_claim(self, claim_id):
        claim = db.session.get(Claim, claim_id)
        if not claim:
            raise NotFound(f"Claim {claim_id} not found")
        return claim

    def get_claim_detail(self, claim_id):
        claim = self.get_claim(claim_id)
        data = claim.to_dict()
        suggestion = AISuggestion.query.filter_by(claim_id=claim_id).first()
        data['ai_suggestion'] = suggestion.to_dict() if suggestion else None
        final = VerdictService(self.points).get_final_verdict(claim_id)
        data['verdict'] = final.to_dict() if final else None
        return data

    def get_user_claims(self, user_id, status=None):
        query = Claim.query.filter_by(user_id=user_id)
        if status and status != 'all':
            query = query.filter(Claim.status == parse_enum(ClaimStatus, status, 'status'))
        return query.order_by(Claim.created_at.desc(), Claim.id.desc()).all()

    def get_pending_claims(self, category=None, priority=None, limit=50):
        """Fact-checker work queue: urgent first, then oldest first."""
        priority_order = db.case(
            *[(Claim.priority == p, rank) for p, rank in PRIORITY_RANK.items()],
            else_=len(PRIORITY_RANK),
        )
        query = Claim.query.filter(Claim.status.in_(REVIEW_QUEUE_STATUSES))
        if category:
            query = query.filter(Claim.category == parse_enum(Category, category, 'category'))
        if priority:
            query = query.filter(Claim.priority == parse_enum(Priority, priority, 'priority'))
        return query.order_by(priority_order, Claim.created_at.asc(), Claim.id.asc()).limit(limit).all()

    def get_ai_suggestion_queue(self, limit=20):
        """ai_approved claims awaiting a human, least confident suggestions first."""
        return db.session.query(Claim, AISuggestion).join(
            AISuggestion, AISuggestion.id == Claim.ai_suggestion_id
        ).filter(
            Claim.status == ClaimStatus.AI_APPROVED,
            Claim.final_verdict_id.is_(None),
        ).order_by(
            AISuggestion.confidence.asc(), Claim.created_at.asc(), Claim.id.asc(),
        ).limit(limit).all()

    def get_stale_pending(self, older_than, limit=20):
        """Claims still pending since before `older_than` (AI never picked them up)."""
        return Claim.query.filter(
            Claim.status == ClaimStatus.PENDING,
            Claim.created_at < older_than,
        ).order_by(Claim.created_at.asc()).limit(limit).all()
