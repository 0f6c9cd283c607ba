"""Write side for the AI collaborator (runs as a service account with the admin role)."""
from flask import Blueprint, current_app, jsonify, request
from factdesk.auth import require_role
from factdesk.services.suggestion_service import SuggestionService, dispatch_suggestion

ai_bp = Blueprint('ai', __name__)


@ai_bp.route('/claims/<int:claim_id>/suggestion', methods=['POST'])
@require_role('admin')
def record_suggestion(claim_id):
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required', 'code': 'VALIDATION_ERROR'}), 400

    required = ['verdict', 'confidence', 'explanation']
    missing = [f for f in required if f not in data]
    if missing:
        return jsonify({'error': f'Missing fields: {missing}', 'code': 'VALIDATION_ERROR'}), 400

    suggestion = SuggestionService().record_suggestion(
        claim_id,
        verdict=data['verdict'],
        confidence=data['confidence'],
        explanation=data['explanation'],
        sources=data.get('sources'),
        model_name=data.get('model_name'),
    )
    return jsonify(suggestion.to_dict()), 201


@ai_bp.route('/claims/<int:claim_id>/no-suggestion', methods=['POST'])
@require_role('admin')
def no_suggestion(claim_id):
    claim = SuggestionService().mark_no_suggestion(claim_id)
    return jsonify(claim.to_dict())


@ai_bp.route('/claims/<int:claim_id>/request', methods=['POST'])
@require_role('admin')
def request_suggestion(claim_id):
    """Fire-and-forget: ask the AI collaborator about a pending claim."""
    dispatch_suggestion(claim_id, current_app._get_current_object())
    return jsonify({'status': 'dispatched', 'claim_id': claim_id}), 202
