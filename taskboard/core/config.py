from os import getenv

class Settings:
    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "15"))

    # Workflow
    STALE_AFTER_DAYS = int(getenv("STALE_AFTER_DAYS", "3"))
    SNOOZE_DAYS = int(getenv("SNOOZE_DAYS", "3"))
    RECURRENCE_LOOKAHEAD_DAYS = int(getenv("RECURRENCE_LOOKAHEAD_DAYS", "365"))
    DEADLINE_WINDOW_HOURS = int(getenv("DEADLINE_WINDOW_HOURS", "24"))
    NOTIFICATION_DEDUP_HOURS = int(getenv("NOTIFICATION_DEDUP_HOURS", "4"))

    # Sweeps (déclenchés par un cron externe)
    SWEEP_LEASE_SECONDS = int(getenv("SWEEP_LEASE_SECONDS", "300"))
    CRON_SECRET = getenv("CRON_SECRET")

    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

settings = Settings()
