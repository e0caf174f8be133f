from django.conf import settings

DEFAULTS = {
    "TAFEL_RETRY_MAX_ATTEMPTS": 3,
    "TAFEL_RETRY_BASE_DELAY": 1.0,
    "TAFEL_RETRY_BACKOFF": "exponential",
    "TAFEL_STATUS_FROM_COLUMN": True,
    "TAFEL_RULER_STATUS": "complete",
    "TAFEL_ACTIVITY_RECORDER": "tafel.core.engine.activity.DatabaseActivityRecorder",
}


def get_setting(name):
    """Read an engine setting, falling back to its default.

    Looked up on every call so that settings overrides apply to engines that
    are already running.
    """
    return getattr(settings, name, DEFAULTS[name])
