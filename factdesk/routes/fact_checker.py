from flask import Blueprint, jsonify, request
from factdesk.auth import current_principal, require_role
from factdesk.services.claim_service import ClaimService
from factdesk.services.suggestion_service import SuggestionService
from factdesk.services.verdict_service import VerdictService

fact_checker_bp = Blueprint('fact_checker', __name__)


@fact_checker_bp.route('/claims/pending')
@require_role('fact_checker', 'admin')
def pending_claims():
    """Work queue: urgent first, then oldest first."""
    claims = ClaimService().get_pending_claims(
        category=request.args.get('category'),
        priority=request.args.get('priority'),
        limit=min(request.args.get('limit', 50, type=int), 200),
    )
    return jsonify({'claims': [c.to_dict() for c in claims]})


@fact_checker_bp.route('/claims/<int:claim_id>/verdict', methods=['POST'])
@require_role('fact_checker', 'admin')
def submit_verdict(claim_id):
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required', 'code': 'VALIDATION_ERROR'}), 400

    required = ['verdict', 'explanation']
    missing = [f for f in required if f not in data]
    if missing:
        return jsonify({'error': f'Missing fields: {missing}', 'code': 'VALIDATION_ERROR'}), 400

    verdict = VerdictService().submit_verdict(
        fact_checker_id=current_principal().user_id,
        claim_id=claim_id,
        verdict=data['verdict'],
        explanation=data['explanation'],
        sources=data.get('sources'),
        time_spent=data.get('time_spent', 0),
    )
    return jsonify(verdict.to_dict()), 201


@fact_checker_bp.route('/ai-suggestions')
@require_role('fact_checker', 'admin')
def ai_suggestions():
    """Claims with an AI suggestion awaiting a human, least confident first."""
    rows = ClaimService().get_ai_suggestion_queue(limit=min(request.args.get('limit', 20, type=int), 100))
    return jsonify({
        'claims': [{**claim.to_dict(), 'ai_suggestion': suggestion.to_dict()} for claim, suggestion in rows],
    })


@fact_checker_bp.route('/ai-suggestions/<int:claim_id>/review', methods=['POST'])
@require_role('fact_checker', 'admin')
def review_ai_suggestion(claim_id):
    """Approve the suggestion as-is, or edit it. Edits make the organization responsible."""
    data = request.get_json(silent=True) or {}
    result = SuggestionService().approve_or_edit(
        fact_checker_id=current_principal().user_id,
        claim_id=claim_id,
        approved=data.get('approved', True),
        edits=data.get('edits'),
        time_spent=data.get('time_spent', 0),
    )
    return jsonify(result), 201


@fact_checker_bp.route('/ai-suggestions/<int:claim_id>/revisions')
@require_role('fact_checker', 'admin')
def suggestion_revisions(claim_id):
    service = SuggestionService()
    suggestion = service.get_suggestion(claim_id)
    return jsonify({
        'current': suggestion.to_dict(),
        'revisions': [r.to_dict() for r in service.get_revisions(claim_id)],
    })


@fact_checker_bp.route('/stats')
@require_role('fact_checker', 'admin')
def stats():
    return jsonify(VerdictService().get_fact_checker_stats(current_principal().user_id))
