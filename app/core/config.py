from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./tasks.db")

    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_ALGORITHM = getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "1440"))  #session de 24h

    # Admin créé une seule fois par /auth/init-admin
    DEFAULT_ADMIN_ID = getenv("DEFAULT_ADMIN_ID", "admin")
    DEFAULT_ADMIN_EMAIL = getenv("DEFAULT_ADMIN_EMAIL")
    DEFAULT_ADMIN_PASSWORD = getenv("DEFAULT_ADMIN_PASSWORD")

    APP_URL = getenv("APP_URL", "http://localhost:3000")
    SETUP_TOKEN_EXPIRE_HOURS = int(getenv("SETUP_TOKEN_EXPIRE_HOURS", "24"))

    DEADLINE_WINDOW_HOURS = int(getenv("DEADLINE_WINDOW_HOURS", "24"))
    SWEEP_INTERVAL_SECONDS = int(getenv("SWEEP_INTERVAL_SECONDS", "3600"))

    # Sans MAIL_HOST les mails sont seulement loggés
    MAIL_HOST = getenv("MAIL_HOST")
    MAIL_PORT = int(getenv("MAIL_PORT", "465"))
    MAIL_USER = getenv("MAIL_USER")
    MAIL_PASSWORD = getenv("MAIL_PASSWORD")
    MAIL_FROM = getenv("MAIL_FROM", getenv("MAIL_USER", "no-reply@localhost"))

    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

settings = Settings()
