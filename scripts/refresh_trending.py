#!/usr/bin/env python3
"""Rescore trending claims once, outside the scheduler. Optionally reconcile point totals too."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from factdesk import create_app
from factdesk.services.points_service import PointsService
from factdesk.services.trending_service import TrendingService

if __name__ == '__main__':
    app = create_app()

    with app.app_context():
        result = TrendingService().refresh_scores()
        print(f"Scored {result['scored']} claims, {result['trending']} trending")

        if '--reconcile-points' in sys.argv[1:]:
            corrected = PointsService().reconcile_all()
            print(f"Point summaries corrected: {corrected}")
