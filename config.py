"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Session Configuration (the cart lives in the signed session cookie)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # CSRF (Flask-WTF). JSON clients send the token in X-CSRFToken.
    WTF_CSRF_ENABLED = os.getenv('WTF_CSRF_ENABLED', 'true').lower() == 'true'

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'shop')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'shop')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'shop')

        DATABASE_URL = (
            f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Pricing engine feature flags
    PRICING_CURRENCY = os.getenv('PRICING_CURRENCY', 'EUR')
    PRICING_GROUP_PRICES_ENABLED = os.getenv('PRICING_GROUP_PRICES_ENABLED', 'true').lower() == 'true'
    PRICING_ENABLED_MODES = os.getenv('PRICING_ENABLED_MODES', 'simple,grouped,variable')
    # Bundle builder is not wired to per-item pricing; flat box price only
    PRICING_MIX_AND_MATCH_ENABLED = os.getenv('PRICING_MIX_AND_MATCH_ENABLED', 'false').lower() == 'true'
    # Stock shown for subscription plans without a stock level
    PRICING_UNLIMITED_STOCK = int(os.getenv('PRICING_UNLIMITED_STOCK', '999999'))

    # Tax classes (lookup only, no tax computation)
    TAX_RATE_STANDARD = os.getenv('TAX_RATE_STANDARD', '21')
    TAX_RATE_REDUCED = os.getenv('TAX_RATE_REDUCED', '9')
    TAX_RATE_ZERO = os.getenv('TAX_RATE_ZERO', '0')


class TestingConfig(Config):
    """Configuration used by the test-suite (in-memory SQLite)."""

    TESTING = True
    DEBUG = False
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    PRICING_MIX_AND_MATCH_ENABLED = True
