import logging
from flask import Flask
from config import Config


def create_app(config_class=None):
    app = Flask(__name__)
    app.config.from_object(config_class or Config)

    # Fix Railway's DATABASE_URL (postgres:// -> postgresql://)
    db_uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if db_uri.startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = db_uri.replace('postgres://', 'postgresql://', 1)

    # Logging
    logging.basicConfig(
        level=getattr(logging, app.config.get('LOG_LEVEL', 'INFO')),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    # Extensions
    from factdesk.extensions import db, migrate, scheduler
    from factdesk import models  # noqa: F401  (register tables on the metadata)
    db.init_app(app)
    migrate.init_app(app, db)

    # Feature flags
    from factdesk import feature_flags
    feature_flags.init_flags()

    # Errors + blueprints
    from factdesk.errors import register_error_handlers
    register_error_handlers(app)

    from factdesk.routes import register_blueprints
    register_blueprints(app)

    # Scheduler
    if app.config.get('SCHEDULER_ENABLED') and not app.config.get('TESTING'):
        scheduler.init_app(app)
        with app.app_context():
            from factdesk.jobs.scheduled import register_jobs
            register_jobs(scheduler, app)
        scheduler.start()

    return app
