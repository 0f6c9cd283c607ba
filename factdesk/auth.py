"""
Principal extraction. Authentication happens upstream; the gateway forwards the
verified identity as X-User-Id / X-User-Role and we trust it as-is.
"""
from collections import namedtuple
from functools import wraps
from flask import g, jsonify, request
from factdesk.models.enums import Role

Principal = namedtuple('Principal', ['user_id', 'role'])


def _principal_from_headers():
    raw_id = (request.headers.get('X-User-Id') or '').strip()
    raw_role = (request.headers.get('X-User-Role') or Role.USER.value).strip().lower()
    if not raw_id.isdigit():
        return None
    try:
        role = Role(raw_role)
    except ValueError:
        return None
    return Principal(int(raw_id), role)


def current_principal():
    return getattr(g, 'principal', None)


def require_role(*roles):
    """Require an upstream principal; with roles given, require one of them."""
    allowed = {Role(r) for r in roles}

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            principal = _principal_from_headers()
            if principal is None:
                return jsonify({'error': 'Authentication required', 'code': 'AUTH_ERROR'}), 401
            if allowed and principal.role not in allowed:
                return jsonify({'error': 'Insufficient role', 'code': 'FORBIDDEN'}), 403
            g.principal = principal
            return func(*args, **kwargs)

        return wrapper

    return decorator
