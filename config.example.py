# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets (SMTP password, Matrix password): keep them in .env (gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKBELL_APP_NAME": "App display name (default: taskbell).",
    "TASKBELL_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "TASKBELL_DATA_DIR": "Local data directory (default: .local/taskbell).",
    "TASKBELL_DB_PATH": "SQLite database path (default: <data_dir>/taskbell.sqlite3).",
    # Reminder scheduler
    "TASKBELL_REMINDER_ENABLED": "Run the background reminder sweep (default: true).",
    "TASKBELL_REMINDER_INTERVAL_SECONDS": "Seconds between sweeps; the first runs at startup (default: 21600 = 6h).",
    "TASKBELL_REMINDER_WINDOW_SECONDS": "Remind about tasks due within this many seconds (default: 86400 = 24h).",
    "TASKBELL_REMINDER_SEND_TIMEOUT_SECONDS": "Per-reminder mail send timeout (default: 30).",
    # SMTP (mail is only logged when host/sender are not set)
    "TASKBELL_SMTP_HOST": "SMTP server, e.g. smtp.gmail.com.",
    "TASKBELL_SMTP_PORT": "SMTP port (default: 587).",
    "TASKBELL_SMTP_USERNAME": "SMTP login (empty => no login).",
    "TASKBELL_SMTP_PASSWORD": "SMTP password / app password.",
    "TASKBELL_SMTP_SENDER": "From address (default: SMTP username).",
    "TASKBELL_SMTP_STARTTLS": "Upgrade the connection with STARTTLS (default: true).",
    "TASKBELL_SMTP_TIMEOUT_SECONDS": "SMTP socket timeout (default: 20).",
    # Matrix live sessions
    "TASKBELL_MATRIX_ENABLED": "Enable Matrix live delivery (true/false).",
    "TASKBELL_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "TASKBELL_MATRIX_USER_ID": "Matrix user ID of the notification bot.",
    "TASKBELL_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "TASKBELL_MATRIX_STORE_PATH": "Matrix session dir (default: <data_dir>/matrix_store).",
    "TASKBELL_MATRIX_USER_ROOMS": "App user id -> room id, e.g. '1=!abc:example.org,2=!def:example.org'.",
}
