#!/usr/bin/env python3
"""Load seed users (staff and demo accounts) into the database. Idempotent."""

import json
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from factdesk import create_app
from factdesk.extensions import db
from factdesk.models.enums import Role
from factdesk.models.user import User
from factdesk.services.points_service import PointsService


def seed_users(filepath):
    """Load users from JSON. Skip existing by username."""
    with open(filepath) as f:
        users = json.load(f)

    added = 0
    skipped = 0
    for u in users:
        existing = User.query.filter_by(username=u['username']).first()
        if existing:
            skipped += 1
            continue

        user = User(
            username=u['username'],
            email=u.get('email'),
            role=Role(u.get('role', 'user')),
        )
        db.session.add(user)
        added += 1

    db.session.commit()
    print(f"Users: {added} added, {skipped} skipped (already exist)")


def init_points():
    """Create point summaries (and registration bonuses) for users that have none."""
    points = PointsService()
    for user in User.query.filter_by(role=Role.USER).all():
        points.get_user_points(user.id)
    print("Point summaries initialized")


if __name__ == '__main__':
    app = create_app()
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    path = sys.argv[1] if len(sys.argv) > 1 else os.path.join(project_root, 'seed_users.json')

    with app.app_context():
        print("Seeding database...")
        seed_users(path)
        init_points()
        print("Done.")
