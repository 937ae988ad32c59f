# ===================================================================
# Configuration for the Media Stack Setup script
#
# Every value can be overridden from the environment so the script
# can be driven non-interactively (CI, provisioning scripts).
# ===================================================================

import os

# --- Container Identity ---
# Written to .env as PUID/PGID; linuxserver.io images run as this user
PUID = os.getenv('STACK_PUID', '1000')
PGID = os.getenv('STACK_PGID', '1000')

# --- Timezone ---
# Used when the host timezone cannot be mapped to a supported region
DEFAULT_TIMEZONE = os.getenv('DEFAULT_TIMEZONE', 'America/New_York')

# --- Path Translation ---
# Windows drives are visible under this root inside WSL2 / Docker Desktop
WSL_MOUNT_ROOT = os.getenv('WSL_MOUNT_ROOT', '/mnt')

# --- Output ---
ENV_FILE = os.getenv('ENV_FILE', '.env')

# --- Prerequisites ---
DOCKER_COMMAND = os.getenv('DOCKER_COMMAND', 'docker')
DOCKER_CHECK_TIMEOUT = os.getenv('DOCKER_CHECK_TIMEOUT', '15')

# --- Health Checks ---
SERVICE_HOST = os.getenv('SERVICE_HOST', 'localhost')
HEALTHCHECK_TIMEOUT = os.getenv('HEALTHCHECK_TIMEOUT', '5')

# --- Logging Configuration ---
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('LOG_FILE') or None

# Runtime flags (set by main.py)
DRY_RUN = False
ASSUME_YES = False

# ===================================================================
# Validation
# ===================================================================
def as_int(value, default):
    """int(value), or default when value is not a whole number"""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default

def _non_negative_int(name, value, errors):
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be an integer, got '{value}'")
        return None
    if number < 0:
        errors.append(f"{name} must not be negative, got {number}")
        return None
    return number

def validate_config():
    """Validate configuration values. Returns (errors, warnings)."""
    errors = []
    warnings = []

    for name, value in (('STACK_PUID', PUID), ('STACK_PGID', PGID)):
        number = _non_negative_int(name, value, errors)
        if number == 0:
            warnings.append(f"{name} is 0 - containers will run as root")

    for name, value in (('DOCKER_CHECK_TIMEOUT', DOCKER_CHECK_TIMEOUT),
                        ('HEALTHCHECK_TIMEOUT', HEALTHCHECK_TIMEOUT)):
        number = _non_negative_int(name, value, errors)
        if number == 0:
            errors.append(f"{name} must be at least 1 second")

    if not WSL_MOUNT_ROOT.startswith('/'):
        errors.append(f"WSL_MOUNT_ROOT '{WSL_MOUNT_ROOT}' must be an absolute POSIX path")

    if not DEFAULT_TIMEZONE or '/' not in DEFAULT_TIMEZONE:
        warnings.append(f"DEFAULT_TIMEZONE '{DEFAULT_TIMEZONE}' does not look like an IANA timezone name")

    if LOG_LEVEL.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        errors.append(f"LOG_LEVEL '{LOG_LEVEL}' is not a valid log level")

    return errors, warnings

def show_config_summary():
    """Display a summary of current configuration"""
    print("=== Media Stack Setup Configuration ===")
    print(f"PUID/PGID: {PUID}/{PGID}")
    print(f"Default Timezone: {DEFAULT_TIMEZONE}")
    print(f"Mount Root: {WSL_MOUNT_ROOT}")
    print(f"Env File: {ENV_FILE}")
    print(f"Docker Command: {DOCKER_COMMAND}")
    print(f"Dry Run: {'Enabled' if DRY_RUN else 'Disabled'}")
    print(f"Log Level: {LOG_LEVEL}")
    print("=" * 39)

# ===================================================================
