# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Every variable is optional; see src/focuslist/config.py for parsing and clamping rules.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "FOCUSLIST_APP_NAME": "App display name (default: focuslist).",
    "FOCUSLIST_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "FOCUSLIST_DATA_DIR": "Local data directory, also holds logs (default: .local/focuslist).",
    "FOCUSLIST_STORE_DB_PATH": "Key-value SQLite path (default: <data_dir>/store.sqlite3).",
    # Timer
    "FOCUSLIST_WORK_SECONDS": "Work period length, 1..5999 (default: 1500).",
    "FOCUSLIST_BREAK_SECONDS": "Break period length, 1..5999 (default: 300).",
    "FOCUSLIST_PERSIST_EVERY_TICKS": "Save the running snapshot every N ticks (default: 1).",
    # Alerts
    "FOCUSLIST_SOUND_ENABLED": "Play a short tone on expiry; needs the 'sound' extra (true/false).",
    "FOCUSLIST_NOTIFICATIONS_ENABLED": "Print a notification line on expiry (true/false).",
}
