# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Every variable is optional; the defaults reproduce a plain `callback-scheduler` run on port 8080.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "SCHEDULER_APP_NAME": "App display name used in startup logs (default: callback-scheduler).",
    "SCHEDULER_LOG_LEVEL": "Console logging level (default: INFO).",
    "SCHEDULER_LOG_TO_FILE": "Also write DEBUG logs under the data dir (true/false, default: true).",
    # HTTP listener
    "SCHEDULER_HOST": "Interface to bind (default: 0.0.0.0).",
    "SCHEDULER_PORT": "Port to bind (default: 8080).",
    # Outbound callbacks
    "SCHEDULER_DELIVERY_TIMEOUT_SECONDS": (
        "Whole-request timeout for each callback POST (default: 10). Non-positive values are ignored."
    ),
    # Paths (gitignored)
    "SCHEDULER_DATA_DIR": "Local data directory for log files (default: .local/callback_scheduler).",
}
