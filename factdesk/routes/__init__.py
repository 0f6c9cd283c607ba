def register_blueprints(app):
    from factdesk.routes.health import health_bp
    from factdesk.routes.claims import claims_bp
    from factdesk.routes.fact_checker import fact_checker_bp
    from factdesk.routes.ai import ai_bp
    from factdesk.routes.notifications import notifications_bp
    from factdesk.routes.points import points_bp
    from factdesk.routes.admin import admin_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(claims_bp, url_prefix='/api/claims')
    app.register_blueprint(fact_checker_bp, url_prefix='/api/fact-checker')
    app.register_blueprint(ai_bp, url_prefix='/api/ai')
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')
    app.register_blueprint(points_bp, url_prefix='/api/points')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
