import logging
from datetime import datetime, timezone
from sqlalchemy.exc import IntegrityError
from factdesk.errors import (
    AlreadyFinalized, Conflict, Forbidden, NotFound, Unrecoverable, ValidationError,
)
from factdesk.extensions import db
from factdesk.models.claim import Claim
from factdesk.models.enums import (
    ApprovalStatus, ClaimStatus, REVIEW_QUEUE_STATUSES, Responsibility, Role, VerdictKind,
    parse_enum, sources_into,
)
from factdesk.models.user import User
from factdesk.models.verdict import Verdict
from factdesk.services.points_service import PointsService
from factdesk.utils.transaction import atomic

logger = logging.getLogger(__name__)

FINALIZABLE_STATUSES = sources_into(ClaimStatus.HUMAN_APPROVED)
MAX_EXPLANATION_CHARS = 10_000


def validate_sources(sources, field='sources'):
    if sources is None:
        return []
    if not isinstance(sources, (list, tuple)) or not all(isinstance(s, str) for s in sources):
        raise ValidationError(f'"{field}" must be a list of strings')
    return [s.strip() for s in sources if s.strip()]


def validate_explanation(explanation):
    if not isinstance(explanation, str) or not explanation.strip():
        raise ValidationError('"explanation" is required')
    if len(explanation) > MAX_EXPLANATION_CHARS:
        raise ValidationError(f'"explanation" exceeds {MAX_EXPLANATION_CHARS} characters')
    return explanation.strip()


class VerdictService:
    """
    The verdict ledger. Every path that resolves a claim goes through
    claim_for_finalization() + record_final() inside one transaction.
    """

    def __init__(self, points_service=None):
        self.points = points_service or PointsService()

    def require_fact_checker(self, user_id):
        user = db.session.get(User, user_id)
        if not user:
            raise NotFound(f"User {user_id} not found")
        if not user.is_active or user.role not in (Role.FACT_CHECKER, Role.ADMIN):
            raise Forbidden(f"User {user_id} may not adjudicate claims")
        return user

    def load_claim(self, claim_id):
        claim = db.session.get(Claim, claim_id)
        if not claim:
            raise NotFound(f"Claim {claim_id} not found")
        return claim

    def check_not_finalized(self, claim):
        """Entry check. The authoritative re-check happens in claim_for_finalization()."""
        if claim.final_verdict_id is not None or claim.status == ClaimStatus.HUMAN_APPROVED:
            raise AlreadyFinalized(claim.id)
        if claim.status not in FINALIZABLE_STATUSES:
            raise Conflict(f"Claim {claim.id} is {claim.status.value} and cannot be adjudicated")

    def claim_for_finalization(self, claim, fact_checker_id):
        """
        Conditional UPDATE that moves the claim to human_approved only if nobody
        else has. Zero rows updated means we lost a race.
        """
        claimed = Claim.query.filter(
            Claim.id == claim.id,
            Claim.status.in_(FINALIZABLE_STATUSES),
            Claim.final_verdict_id.is_(None),
        ).update({
            'status': ClaimStatus.HUMAN_APPROVED,
            'assigned_fact_checker_id': fact_checker_id,
            'resolved_at': datetime.now(timezone.utc),
        }, synchronize_session=False)

        if claimed == 0:
            current = db.session.query(Claim.status).filter(Claim.id == claim.id).scalar()
            if current == ClaimStatus.REJECTED:
                raise Conflict(f"Claim {claim.id} was rejected")
            logger.warning(f"Lost finalization race on claim {claim.id} (fact-checker {fact_checker_id})")
            raise AlreadyFinalized(claim.id)

    def record_final(self, claim, fact_checker_id, verdict, explanation, sources,
                     responsibility, ai_suggestion_id=None, time_spent=0):
        """Insert the final verdict, link it to the claim and credit points. Call after claim_for_finalization()."""
        submitter_id = claim.user_id
        row = Verdict(
            claim_id=claim.id,
            fact_checker_id=fact_checker_id,
            verdict=verdict,
            explanation=explanation,
            sources_json=list(sources),
            ai_suggestion_id=ai_suggestion_id,
            responsibility=responsibility,
            is_final=True,
            approval_status=ApprovalStatus.APPROVED,
            time_spent=time_spent,
        )
        db.session.add(row)
        try:
            db.session.flush()
        except IntegrityError as e:
            raise AlreadyFinalized(claim.id) from e

        Claim.query.filter_by(id=claim.id).update(
            {'final_verdict_id': row.id}, synchronize_session=False,
        )
        db.session.expire(claim)

        values = self.points.values
        self.points.credit(
            fact_checker_id, values['VERDICT_SUBMITTED'], 'VERDICT_SUBMITTED',
            f"Verdict on claim {claim.id}",
        )
        if submitter_id != fact_checker_id:
            self.points.credit(
                submitter_id, values['VERDICT_RECEIVED'], 'VERDICT_RECEIVED',
                f"Received verdict for claim {claim.id}",
            )
        return row

    def submit_verdict(self, fact_checker_id, claim_id, verdict, explanation, sources=None, time_spent=0):
        """Independent verdict. Never linked to an AI suggestion, so responsibility is always org."""
        verdict = parse_enum(VerdictKind, verdict, 'verdict')
        explanation = validate_explanation(explanation)
        sources = validate_sources(sources)
        if isinstance(time_spent, bool) or not isinstance(time_spent, int) or time_spent < 0:
            raise ValidationError('"time_spent" must be a non-negative integer (minutes)')

        self.require_fact_checker(fact_checker_id)
        claim = self.load_claim(claim_id)
        self.check_not_finalized(claim)

        with atomic():
            self.claim_for_finalization(claim, fact_checker_id)
            row = self.record_final(
                claim, fact_checker_id, verdict, explanation, sources,
                responsibility=Responsibility.ORG,
                time_spent=time_spent,
            )

        logger.info(
            f"Claim {claim_id} finalized by fact-checker {fact_checker_id}: "
            f"{verdict.value} (responsibility=org, verdict {row.id})"
        )
        return row

    def get_final_verdict(self, claim_id):
        rows = Verdict.query.filter_by(claim_id=claim_id, is_final=True).all()
        if len(rows) > 1:
            logger.error(f"Claim {claim_id} has {len(rows)} final verdicts: {[r.id for r in rows]}")
            raise Unrecoverable(f"Claim {claim_id} has more than one final verdict")
        return rows[0] if rows else None

    def get_fact_checker_stats(self, fact_checker_id):
        self.require_fact_checker(fact_checker_id)

        totals = db.session.query(
            db.func.count(Verdict.id),
            db.func.coalesce(db.func.avg(Verdict.time_spent), 0),
        ).filter(Verdict.fact_checker_id == fact_checker_id).first()
        total_verdicts = int(totals[0] or 0)

        distribution = {kind.value: 0 for kind in VerdictKind}
        for kind, count in db.session.query(Verdict.verdict, db.func.count(Verdict.id)).filter(
            Verdict.fact_checker_id == fact_checker_id
        ).group_by(Verdict.verdict).all():
            distribution[VerdictKind(kind).value] = count

        responsibility = {r.value: 0 for r in Responsibility}
        for resp, count in db.session.query(Verdict.responsibility, db.func.count(Verdict.id)).filter(
            Verdict.fact_checker_id == fact_checker_id
        ).group_by(Verdict.responsibility).all():
            responsibility[Responsibility(resp).value] = count

        approved = Verdict.query.filter_by(
            fact_checker_id=fact_checker_id, approval_status=ApprovalStatus.APPROVED,
        ).count()
        accuracy = round(100.0 * approved / total_verdicts, 1) if total_verdicts else None

        pending_review = Claim.query.filter(
            Claim.status.in_(REVIEW_QUEUE_STATUSES)
        ).count()

        return {
            'total_verdicts': total_verdicts,
            'pending_review': pending_review,
            'avg_time_spent': round(float(totals[1] or 0), 1),
            'accuracy': accuracy,
            'verdict_distribution': distribution,
            'responsibility_split': responsibility,
        }
