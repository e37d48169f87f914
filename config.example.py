# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file
in the directory the app is started from). This file makes the repo self-documenting.
"""

ENV_VARS = {
    # App / logging
    "TASKTRACK_APP_NAME": "App display name (default: tasktrack).",
    "TASKTRACK_LOG_LEVEL": "Console logging level (default: INFO).",
    "TASKTRACK_LOG_TO_FILE": "Also write full DEBUG logs to <log_dir>/tasktrack.log (true/false).",
    # Paths (gitignored)
    "TASKTRACK_DATA_DIR": "Local data directory (default: .local/tasktrack).",
    "TASKTRACK_TASKS_DIR": "Per-user task files, one <user_id>.json each (default: <data_dir>/tasks).",
    "TASKTRACK_LOG_DIR": "Log file directory (default: <data_dir>).",
    # Service
    "TASKTRACK_QUEUE_SIZE": "Max queued task requests before callers wait (default: 0 = unbounded).",
    "TASKTRACK_USER_ID": "User id for console sessions (default: a fresh UUID per run).",
}
