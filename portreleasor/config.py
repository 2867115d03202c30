import os

# -----------------------------------------------------------------------------
# Runtime knobs (environment overrides)
# -----------------------------------------------------------------------------

def _env_float(name, default):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default

# Upper bound for every external tool invocation, in seconds.
COMMAND_TIMEOUT = _env_float("PORTRELEASOR_TIMEOUT", 10.0)

# How long a gracefully signalled process gets before the forceful kill.
GRACE_PERIOD = _env_float("PORTRELEASOR_GRACE", 3.0)

LOG_LEVEL = os.environ.get("PORTRELEASOR_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

PROC_ROOT = "/proc"

UNKNOWN_NAME = "Unknown"
NO_PERMISSION = "NO PERMISSION"
NOT_AVAILABLE = "N/A"
LISTENING = "LISTENING"
