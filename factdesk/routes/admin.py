from datetime import datetime, timedelta, timezone
from flask import Blueprint, jsonify, request
from factdesk import feature_flags
from factdesk.auth import current_principal, require_role
from factdesk.services.claim_service import ClaimService
from factdesk.services.points_service import PointsService
from factdesk.services.trending_service import TrendingService

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/claims/<int:claim_id>/reject', methods=['POST'])
@require_role('admin')
def reject_claim(claim_id):
    """Force a claim into rejected. No verdict is recorded."""
    data = request.get_json(silent=True) or {}
    claim = ClaimService().reject_claim(current_principal().user_id, claim_id, data.get('reason'))
    return jsonify(claim.to_dict())


@admin_bp.route('/claims/<int:claim_id>/priority', methods=['PUT'])
@require_role('admin')
def set_priority(claim_id):
    data = request.get_json(silent=True)
    if not data or 'priority' not in data:
        return jsonify({'error': 'JSON body with "priority" field required', 'code': 'VALIDATION_ERROR'}), 400
    claim = ClaimService().set_priority(current_principal().user_id, claim_id, data['priority'])
    return jsonify(claim.to_dict())


@admin_bp.route('/trending/refresh', methods=['POST'])
@require_role('admin')
def refresh_trending():
    return jsonify(TrendingService().refresh_scores())


@admin_bp.route('/users/<int:user_id>/points/reset', methods=['POST'])
@require_role('admin')
def reset_points(user_id):
    data = request.get_json(silent=True) or {}
    summary = PointsService().reset_user_points(user_id, data.get('reason') or 'Admin reset')
    return jsonify(summary.to_dict())


@admin_bp.route('/flags')
@require_role('admin')
def list_flags():
    return jsonify(feature_flags.all_flags())


@admin_bp.route('/dashboard')
@require_role('admin')
def dashboard():
    """Headline counts. ?days=N limits total_claims to the last N days."""
    days = request.args.get('days', type=int)
    since = datetime.now(timezone.utc) - timedelta(days=days) if days else None
    stats = ClaimService().get_dashboard_stats(current_principal().user_id, since=since)
    return jsonify({'stats': stats, 'days': days})


@admin_bp.route('/points/stats')
@require_role('admin')
def points_stats():
    return jsonify(PointsService().get_points_statistics())
