from flask import Blueprint, jsonify, request
from factdesk.auth import current_principal, require_role
from factdesk.services.points_service import PointsService

points_bp = Blueprint('points', __name__)


@points_bp.route('/me')
@require_role()
def my_points():
    return jsonify(PointsService().get_user_points(current_principal().user_id))


@points_bp.route('/history')
@require_role()
def history():
    limit = min(request.args.get('limit', 50, type=int), 200)
    entries = PointsService().get_points_history(current_principal().user_id, limit=limit)
    return jsonify({'history': [e.to_dict() for e in entries]})


@points_bp.route('/daily-login', methods=['POST'])
@require_role()
def daily_login():
    """Credit today's login. Repeat calls on the same day award nothing."""
    return jsonify(PointsService().award_daily_login(current_principal().user_id))


@points_bp.route('/leaderboard')
def leaderboard():
    limit = min(request.args.get('limit', 100, type=int), 500)
    return jsonify({'leaderboard': PointsService().get_leaderboard(limit=limit)})


@points_bp.route('/award', methods=['POST'])
@require_role('admin')
def award():
    """Manual award. The caller is responsible for not awarding twice."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required', 'code': 'VALIDATION_ERROR'}), 400

    required = ['user_id', 'amount', 'activity_type']
    missing = [f for f in required if f not in data]
    if missing:
        return jsonify({'error': f'Missing fields: {missing}', 'code': 'VALIDATION_ERROR'}), 400

    service = PointsService()
    entry = service.award_points(
        data['user_id'], data['amount'], data['activity_type'], data.get('description', ''),
    )
    return jsonify({
        'entry': entry.to_dict(),
        'summary': service.get_user_points(data['user_id']),
    }), 201
