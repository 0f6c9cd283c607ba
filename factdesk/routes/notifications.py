from flask import Blueprint, jsonify, request
from factdesk.auth import current_principal, require_role
from factdesk.services.notification_service import NotificationService

notifications_bp = Blueprint('notifications', __name__)
notification_service = NotificationService()


@notifications_bp.route('/unread-verdicts')
@require_role()
def unread_verdicts():
    user_id = current_principal().user_id
    limit = min(request.args.get('limit', 50, type=int), 200)
    verdicts = notification_service.get_unread_verdicts(user_id, limit=limit)
    return jsonify({'verdicts': verdicts, 'count': len(verdicts)})


@notifications_bp.route('/unread-verdicts/count')
@require_role()
def unread_count():
    return jsonify({'count': notification_service.get_unread_count(current_principal().user_id)})


@notifications_bp.route('/verdicts/<int:verdict_id>/read', methods=['POST'])
@require_role()
def mark_read(verdict_id):
    """Marks this verdict, and everything older, as read."""
    read_at = notification_service.mark_read(current_principal().user_id, verdict_id)
    return jsonify({'status': 'read', 'read_up_to': read_at.isoformat()})


@notifications_bp.route('/verdicts/read-all', methods=['POST'])
@require_role()
def mark_all_read():
    read_at = notification_service.mark_all_read(current_principal().user_id)
    return jsonify({'status': 'read', 'read_up_to': read_at.isoformat()})
