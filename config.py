"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_flag(name, default='false'):
    return os.getenv(name, default).lower() == 'true'


def _database_url():
    """DATABASE_URL, else a PostgreSQL URL assembled from DB_* (or POSTGRES_*) parts."""
    url = os.getenv('DATABASE_URL')
    if url:
        return url

    def part(name, fallback, default):
        return os.getenv(f'DB_{name}') or os.getenv(f'POSTGRES_{fallback}', default)

    return (
        f"postgresql+psycopg://{part('USER', 'USER', 'marketplace')}:{part('PASSWORD', 'PASSWORD', 'marketplace')}"
        f"@{part('HOST', 'HOST', 'localhost')}:{part('PORT', 'PORT', '5432')}/{part('NAME', 'DB', 'marketplace')}"
    )


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_ECHO = _env_flag('SQLALCHEMY_ECHO')

    # Identity tokens, sent as an HTTP-only cookie or a Bearer header
    JWT_SECRET = os.getenv('JWT_SECRET', SECRET_KEY)
    JWT_EXPIRES_DAYS = int(os.getenv('JWT_EXPIRES_DAYS', '7'))
    AUTH_COOKIE_NAME = os.getenv('AUTH_COOKIE_NAME', 'token')
    AUTH_COOKIE_SECURE = _env_flag('AUTH_COOKIE_SECURE', 'true' if ENV == 'production' else 'false')
    AUTH_COOKIE_SAMESITE = os.getenv('AUTH_COOKIE_SAMESITE', 'Strict')

    # Marketplace
    PLATFORM_FEE_PERCENTAGE = os.getenv('PLATFORM_FEE_PERCENTAGE', '15.00')
    PRODUCTS_PAGE_SIZE = int(os.getenv('PRODUCTS_PAGE_SIZE', '20'))
    RECENT_PAYMENTS_LIMIT = int(os.getenv('RECENT_PAYMENTS_LIMIT', '50'))
