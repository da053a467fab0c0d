import os
import secrets
import warnings

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


def env_flag(name, default):
    """Read a true/false environment variable"""
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes")


def _session_secret():
    secret = os.environ.get("SECRET_KEY")
    if secret:
        return secret

    warnings.warn(
        "SECRET_KEY is missing; logins will not survive a restart of ProAce.",
        UserWarning,
    )
    return secrets.token_urlsafe(32)


class Config:
    SECRET_KEY = _session_secret()

    def __init__(self):
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()

    def _build_database_uri(self):
        """DATABASE_URL wins; otherwise DB_TYPE=postgresql assembles a URI from DB_* parts"""
        if os.environ.get("DATABASE_URL"):
            return os.environ["DATABASE_URL"]

        if os.environ.get("DB_TYPE", "sqlite").lower() != "postgresql":
            return "sqlite:///" + os.path.join(basedir, "proace.db")

        parts = {
            "user": os.environ.get("DB_USER") or "proace",
            "password": os.environ.get("DB_PASSWORD") or "proace",
            "host": os.environ.get("DB_HOST") or "localhost",
            "port": os.environ.get("DB_PORT") or "5432",
            "name": os.environ.get("DB_NAME") or "proace",
        }
        return "postgresql+psycopg://{user}:{password}@{host}:{port}/{name}".format(
            **parts
        )

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Timeframe used by /api/leaderboard when the request names none
    DEFAULT_TIMEFRAME = os.environ.get("DEFAULT_TIMEFRAME", "all-time")

    # Insert the ten national teams on startup when they are missing
    SEED_DEFAULT_TEAMS = env_flag("SEED_DEFAULT_TEAMS", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = env_flag("LOG_TO_CONSOLE", True)
    LOG_TO_FILE = env_flag("LOG_TO_FILE", True)
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_ECHO = env_flag("SQLALCHEMY_ECHO", False)


class ProductionConfig(Config):
    DEBUG = False

    def __init__(self):
        super().__init__()

        if not os.environ.get("SECRET_KEY"):
            warnings.warn(
                "ProAce is running in production with a generated SECRET_KEY.",
                UserWarning,
            )


class TestingConfig(Config):
    TESTING = True
    SEED_DEFAULT_TEAMS = False
    LOG_TO_FILE = False
    LOG_TO_CONSOLE = False

    def _build_database_uri(self):
        return "sqlite:///:memory:"


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
