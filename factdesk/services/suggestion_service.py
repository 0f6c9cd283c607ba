import logging
import threading
from datetime import datetime, timezone
from flask import current_app
from sqlalchemy.exc import IntegrityError
from factdesk.errors import Conflict, DuplicateSuggestion, NotFound, ValidationError
from factdesk.extensions import db
from factdesk.integrations.ai_gateway import AIGateway
from factdesk.models.claim import Claim
from factdesk.models.enums import ClaimStatus, Responsibility, VerdictKind, parse_enum
from factdesk.models.suggestion import AISuggestion, AISuggestionRevision
from factdesk.services.claim_service import ClaimService
from factdesk.services.points_service import PointsService
from factdesk.services.verdict_service import VerdictService, validate_explanation, validate_sources
from factdesk.utils.transaction import atomic

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('verdict', 'explanation', 'sources', 'added_sources')


def dispatch_suggestion(claim_id, app=None):
    """Ask the AI collaborator about a claim on a daemon thread. Nobody waits for the answer."""
    app = app or current_app._get_current_object()

    def run_in_thread():
        with app.app_context():
            try:
                SuggestionService().request_suggestion(claim_id)
            except Exception as e:
                logger.error(f"AI suggestion for claim {claim_id} failed: {e}", exc_info=True)
            finally:
                db.session.remove()

    thread = threading.Thread(target=run_in_thread, name=f"ai-suggest-{claim_id}", daemon=True)
    thread.start()
    return thread


class SuggestionService:
    """
    The AI suggestion handoff. A claim holds at most one suggestion; a fact-checker
    either approves it untouched (responsibility=ai) or edits it (responsibility=org).
    """

    def __init__(self, gateway=None, points_service=None):
        self._gateway = gateway
        points = points_service or PointsService()
        self.claims = ClaimService(points)
        self.verdicts = VerdictService(points)

    @property
    def gateway(self):
        if self._gateway is None:
            self._gateway = AIGateway()
        return self._gateway

    # -- collaborator side --

    def request_suggestion(self, claim_id):
        """pending -> ai_processing, call the AI, then record what came back (or that nothing did)."""
        claim = self.claims.get_claim(claim_id)
        if claim.status != ClaimStatus.PENDING:
            logger.info(f"Claim {claim_id} is {claim.status.value}; skipping AI request")
            return None

        with atomic():
            self.claims.transition(claim, ClaimStatus.AI_PROCESSING)

        result = self.gateway.suggest(claim.text, claim.category.value, claim.source_link)
        if not result:
            self._hand_to_humans(claim_id)
            return None

        try:
            return self.record_suggestion(
                claim_id,
                verdict=result['verdict'],
                confidence=result['confidence'],
                explanation=result['explanation'],
                sources=result.get('sources'),
                model_name=result.get('model_name'),
            )
        except ValidationError as e:
            logger.error(f"AI returned an unusable suggestion for claim {claim_id}: {e.message}")
            self._hand_to_humans(claim_id)
            return None
        except Conflict as e:
            logger.warning(f"AI suggestion for claim {claim_id} arrived too late: {e.message}")
            return None

    def record_suggestion(self, claim_id, verdict, confidence, explanation, sources=None, model_name=None):
        verdict = parse_enum(VerdictKind, verdict, 'verdict')
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ValidationError('"confidence" must be a number between 0 and 1')
        if not 0.0 <= float(confidence) <= 1.0:
            raise ValidationError(f'"confidence" must be between 0 and 1, got {confidence}')
        explanation = validate_explanation(explanation)
        sources = validate_sources(sources)

        claim = self.claims.get_claim(claim_id)
        if claim.ai_suggestion_id is not None or AISuggestion.query.filter_by(claim_id=claim_id).first():
            raise DuplicateSuggestion(claim_id)

        with atomic():
            if claim.status == ClaimStatus.PENDING:
                self.claims.transition(claim, ClaimStatus.AI_PROCESSING)
            self.claims.transition(claim, ClaimStatus.AI_APPROVED)

            suggestion = AISuggestion(
                claim_id=claim_id,
                verdict=verdict,
                confidence=float(confidence),
                explanation=explanation,
                sources_json=sources,
                model_name=model_name,
            )
            db.session.add(suggestion)
            try:
                db.session.flush()
            except IntegrityError as e:
                raise DuplicateSuggestion(claim_id) from e

            Claim.query.filter_by(id=claim_id).update(
                {'ai_suggestion_id': suggestion.id}, synchronize_session=False,
            )

        logger.info(
            f"AI suggestion {suggestion.id} recorded for claim {claim_id}: "
            f"{verdict.value} @ {float(confidence):.2f}"
        )
        return suggestion

    def _hand_to_humans(self, claim_id):
        try:
            self.mark_no_suggestion(claim_id)
        except Conflict as e:
            # A fact-checker finalized (or an admin rejected) the claim while the AI was working.
            logger.warning(f"Claim {claim_id} moved on before the AI answered: {e.message}")

    def mark_no_suggestion(self, claim_id):
        """The collaborator produced nothing usable; hand the claim to humans."""
        claim = self.claims.get_claim(claim_id)
        with atomic():
            self.claims.transition(claim, ClaimStatus.HUMAN_REVIEW)
        return claim

    # -- fact-checker side --

    def _normalize_edits(self, edits):
        if edits is None:
            return {}
        if not isinstance(edits, dict):
            raise ValidationError('"edits" must be an object')

        unknown = sorted(set(edits) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown edit fields: {unknown}")

        nulls = sorted(k for k, v in edits.items() if v is None)
        if nulls:
            raise ValidationError(f"Edit fields cannot be null: {nulls}")

        changes = {}
        if 'verdict' in edits:
            changes['verdict'] = parse_enum(VerdictKind, edits['verdict'], 'verdict')
        if 'explanation' in edits:
            changes['explanation'] = validate_explanation(edits['explanation'])
        if 'sources' in edits:
            changes['sources'] = validate_sources(edits['sources'])
        if 'added_sources' in edits:
            added = validate_sources(edits['added_sources'], 'added_sources')
            if not added:
                raise ValidationError('"added_sources" must contain at least one source')
            changes['added_sources'] = added
        return changes

    def approve_or_edit(self, fact_checker_id, claim_id, approved=True, edits=None, time_spent=0):
        """
        Finalize a claim from its AI suggestion.
        No edits: the verdict repeats the suggestion and responsibility is ai.
        Any edit: the original output is snapshotted, the suggestion is edited in
        place and responsibility is org.
        """
        changes = self._normalize_edits(edits)
        if not approved and not changes:
            raise ValidationError(
                'Nothing to finalize: edit the suggestion or submit an independent verdict'
            )
        if isinstance(time_spent, bool) or not isinstance(time_spent, int) or time_spent < 0:
            raise ValidationError('"time_spent" must be a non-negative integer (minutes)')

        self.verdicts.require_fact_checker(fact_checker_id)
        claim = self.claims.get_claim(claim_id)
        suggestion = AISuggestion.query.filter_by(claim_id=claim_id).first()
        if not suggestion:
            raise NotFound(f"No AI suggestion for claim {claim_id}")
        self.verdicts.check_not_finalized(claim)

        responsibility = Responsibility.ORG if changes else Responsibility.AI

        with atomic():
            self.verdicts.claim_for_finalization(claim, fact_checker_id)

            if changes:
                self._apply_edits(suggestion, changes, fact_checker_id)

            row = self.verdicts.record_final(
                claim, fact_checker_id,
                verdict=suggestion.verdict,
                explanation=suggestion.explanation,
                sources=list(suggestion.sources_json or []),
                responsibility=responsibility,
                ai_suggestion_id=suggestion.id,
                time_spent=time_spent,
            )

        logger.info(
            f"Claim {claim_id} finalized from AI suggestion {suggestion.id} by fact-checker "
            f"{fact_checker_id} (responsibility={responsibility.value}, verdict {row.id})"
        )
        return {'verdict_id': row.id, 'responsibility': responsibility.value}

    def _apply_edits(self, suggestion, changes, editor_id):
        db.session.add(AISuggestionRevision(
            suggestion_id=suggestion.id,
            verdict=suggestion.verdict,
            confidence=suggestion.confidence,
            explanation=suggestion.explanation,
            sources_json=list(suggestion.sources_json or []),
            model_name=suggestion.model_name,
            replaced_by_id=editor_id,
        ))

        sources = changes.get('sources', list(suggestion.sources_json or []))
        sources = sources + [s for s in changes.get('added_sources', []) if s not in sources]

        if 'verdict' in changes:
            suggestion.verdict = changes['verdict']
        if 'explanation' in changes:
            suggestion.explanation = changes['explanation']
        suggestion.sources_json = sources
        suggestion.edited_by_human = True
        suggestion.edited_by_id = editor_id
        suggestion.edited_at = datetime.now(timezone.utc)
        db.session.flush()

    # -- reads --

    def get_suggestion(self, claim_id):
        suggestion = AISuggestion.query.filter_by(claim_id=claim_id).first()
        if not suggestion:
            raise NotFound(f"No AI suggestion for claim {claim_id}")
        return suggestion

    def get_revisions(self, claim_id):
        suggestion = self.get_suggestion(claim_id)
        return AISuggestionRevision.query.filter_by(suggestion_id=suggestion.id).order_by(
            AISuggestionRevision.created_at.asc(), AISuggestionRevision.id.asc()
        ).all()
