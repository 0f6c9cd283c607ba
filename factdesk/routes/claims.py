from flask import Blueprint, jsonify, request
from factdesk.auth import current_principal, require_role
from factdesk.services.claim_service import ClaimService
from factdesk.services.trending_service import TrendingService

claims_bp = Blueprint('claims', __name__)


@claims_bp.route('', methods=['POST'])
@require_role()
def submit_claim():
    """Submit a claim for verification."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required', 'code': 'VALIDATION_ERROR'}), 400

    required = ['category', 'text']
    missing = [f for f in required if f not in data]
    if missing:
        return jsonify({'error': f'Missing fields: {missing}', 'code': 'VALIDATION_ERROR'}), 400

    claim = ClaimService().submit_claim(
        user_id=current_principal().user_id,
        category=data['category'],
        text=data['text'],
        media_url=data.get('media_url'),
        media_type=data.get('media_type'),
        source_link=data.get('source_link'),
    )
    return jsonify(claim.to_dict()), 201


@claims_bp.route('/mine')
@require_role()
def my_claims():
    claims = ClaimService().get_user_claims(current_principal().user_id, request.args.get('status'))
    return jsonify({'claims': [c.to_dict(include_text=False) for c in claims]})


@claims_bp.route('/trending')
def trending_claims():
    """Trending claims, or the most recent ones when nothing is trending."""
    limit = min(request.args.get('limit', 10, type=int), 50)
    claims, is_fallback = TrendingService().get_trending_claims(limit=limit)
    return jsonify({
        'trending_claims': [c.to_dict(include_text=False) for c in claims],
        'count': len(claims),
        'fallback': is_fallback,
    })


@claims_bp.route('/<int:claim_id>')
@require_role()
def claim_detail(claim_id):
    return jsonify(ClaimService().get_claim_detail(claim_id))
