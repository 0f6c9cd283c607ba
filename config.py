import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'postgresql://localhost/factdesk')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True, 'pool_size': 5}

    # AI collaborator (OpenAI-compatible endpoint)
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    AI_MODEL = os.getenv('AI_MODEL', 'gpt-4.1-mini')
    AI_BASE_URL = os.getenv('AI_BASE_URL')  # None = api.openai.com
    AI_MAX_TOKENS = int(os.getenv('AI_MAX_TOKENS', '1200'))
    AI_BACKLOG_MINUTES = int(os.getenv('AI_BACKLOG_MINUTES', '30'))

    # Points & streaks
    POINTS_TIMEZONE = os.getenv('POINTS_TIMEZONE', 'Africa/Nairobi')
    POINT_VALUES = {
        'CLAIM_SUBMISSION': 10,
        'FIRST_CLAIM': 50,
        'VERDICT_SUBMITTED': 20,
        'VERDICT_RECEIVED': 15,
        'DAILY_LOGIN': 5,
        'STREAK_BONUS_7_DAYS': 25,
        'REGISTRATION_BONUS': 10,
    }

    # Trending
    TRENDING_HALF_LIFE_HOURS = float(os.getenv('TRENDING_HALF_LIFE_HOURS', '24'))
    TRENDING_THRESHOLD = float(os.getenv('TRENDING_THRESHOLD', '2.0'))

    # Scheduler
    SCHEDULER_ENABLED = os.getenv('SCHEDULER_ENABLED', 'true').lower() == 'true'
    SCHEDULER_API_ENABLED = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}  # SQLite doesn't support pool_size
    SCHEDULER_ENABLED = False
    OPENAI_API_KEY = 'test-key'
    POINTS_TIMEZONE = 'UTC'
