#!/usr/bin/env python3

import os
import re
import shutil
import subprocess
import tempfile
import time
import typing
from dataclasses import dataclass

import psutil

import config
from logger import setup_logging

logger = setup_logging('media-stack-setup-util')

# ===================================================================
# Helper Classes and Exceptions
# ===================================================================
class PathValidationError(ValueError):
    """Raised when a user-supplied root path is empty after normalization"""
    pass

def normalize_path(raw) -> str:
    """
    Strips surrounding whitespace and every trailing '/' or '\\'.

    normalize_path(normalize_path(p)) == normalize_path(p) for any accepted p.
    Raises PathValidationError when nothing is left.
    """
    if not isinstance(raw, str):
        raise TypeError(f"Expected a string path, but got {type(raw).__name__}")

    normalized = raw.strip().rstrip('/\\')
    if not normalized:
        raise PathValidationError("Path must not be empty")
    return normalized

@dataclass(frozen=True)
class PathPair:
    base_path: str
    media_path: str

    @classmethod
    def from_input(cls, base_path, media_path) -> 'PathPair':
        """Normalize both roots, raising PathValidationError naming the bad one."""
        try:
            base = normalize_path(base_path)
        except PathValidationError:
            raise PathValidationError("Base path must not be empty") from None
        try:
            media = normalize_path(media_path)
        except PathValidationError:
            raise PathValidationError("Media path must not be empty") from None
        return cls(base, media)

# ===================================================================
# Timezone Resolution
# ===================================================================
# Ordered: the first region whose fragment appears in the host id wins.
# Approximate by intent; this is not a timezone database lookup.
# IANA "Pacific/*" zones (Auckland, Honolulu) also contain "Pacific" and land
# on America/Los_Angeles; set DEFAULT_TIMEZONE or edit TZ in .env for those.
TIMEZONE_REGIONS = (
    ('America/New_York', ('Eastern', 'New_York', 'Detroit', 'EST', 'EDT')),
    ('America/Chicago', ('Central', 'Chicago', 'CST', 'CDT')),
    ('America/Denver', ('Mountain', 'Denver', 'Phoenix', 'MST', 'MDT')),
    ('America/Los_Angeles', ('Pacific', 'Los_Angeles', 'PST', 'PDT')),
)

def get_host_timezone() -> typing.Optional[str]:
    """Best-effort raw timezone identifier of the host, or None."""
    tz_env = os.environ.get('TZ', '').strip().lstrip(':')
    if tz_env:
        return tz_env

    try:
        with open('/etc/timezone', 'r') as f:
            value = f.read().strip()
            if value:
                return value
    except OSError:
        pass

    try:
        target = os.readlink('/etc/localtime')
        if 'zoneinfo/' in target:
            return target.split('zoneinfo/', 1)[1]
    except OSError:
        pass

    names = [name for name in time.tzname if name]
    if names:
        return names[0]
    return None

def map_timezone(identifier) -> str:
    """Map a raw host identifier onto a supported region, else the default."""
    if identifier:
        for region, fragments in TIMEZONE_REGIONS:
            if any(fragment in identifier for fragment in fragments):
                return region
    return config.DEFAULT_TIMEZONE

def resolve_timezone(host_tz=None) -> str:
    """
    Resolves the TZ value written to .env. Never raises.

    param host_tz: Raw identifier to map. Read from the host when None.
    return: One of the TIMEZONE_REGIONS identifiers or config.DEFAULT_TIMEZONE.
    """
    try:
        identifier = host_tz if host_tz is not None else get_host_timezone()
        timezone = map_timezone(identifier)
        logger.debug(f"Host timezone '{identifier}' resolved to {timezone}")
        return timezone
    except Exception as e:
        logger.warning(f"Could not determine host timezone ({e}), using {config.DEFAULT_TIMEZONE}")
        return config.DEFAULT_TIMEZONE

# ===================================================================
# Path Translation
# ===================================================================
_DRIVE_PATTERN = re.compile(r'^([A-Za-z]):(.*)$')

def to_container_path(path, mount_root=None) -> str:
    """
    Converts a host path into the form Docker sees under WSL2.

    example: to_container_path('C:\\docker') == '/mnt/c/docker'
    Paths without a drive letter only get their separators converted.
    """
    if mount_root is None:
        mount_root = config.WSL_MOUNT_ROOT

    converted = path.replace('\\', '/')
    match = _DRIVE_PATTERN.match(converted)
    if match:
        drive, rest = match.groups()
        converted = f"{mount_root.rstrip('/')}/{drive.lower()}/{rest.lstrip('/')}"

    converted = re.sub(r'/{2,}', '/', converted)
    if len(converted) > 1:
        converted = converted.rstrip('/')
    return converted

def printable(path) -> str:
    """Path as text any UTF-8 stream can print; undecodable bytes become U+FFFD."""
    return path.encode('utf-8', 'surrogateescape').decode('utf-8', 'replace')

# ===================================================================
# Prerequisites
# ===================================================================
def check_docker(command=None, timeout=None):
    """
    Runs `docker --version`.

    return: (True, version string) when docker answered, (False, reason) otherwise.
    """
    if command is None:
        command = config.DOCKER_COMMAND
    if timeout is None:
        timeout = config.as_int(config.DOCKER_CHECK_TIMEOUT, 15)

    try:
        result = subprocess.run(
            [command, '--version'],
            capture_output=True,
            text=True,
            timeout=timeout
        )
    except FileNotFoundError:
        return False, f"'{command}' command not found"
    except subprocess.TimeoutExpired:
        return False, f"'{command} --version' timed out after {timeout}s"
    except OSError as e:
        return False, f"Could not run '{command}': {e}"

    if result.returncode != 0:
        detail = (result.stderr or result.stdout or '').strip()
        return False, f"'{command} --version' exited with code {result.returncode}: {detail}"

    version = result.stdout.strip()
    logger.debug(f"Docker found: {version}")
    return True, version

DOCKER_PROCESS_NAMES = ('dockerd', 'docker desktop', 'com.docker.backend')

def is_docker_daemon_running():
    """Check for a running Docker daemon process. None when processes can't be listed."""
    try:
        for process in psutil.process_iter(['name']):
            try:
                name = (process.info['name'] or '').lower()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
            if any(candidate in name for candidate in DOCKER_PROCESS_NAMES):
                return True
        return False
    except Exception as e:
        logger.debug(f"Error scanning processes for docker daemon: {e}")
        return None

# ===================================================================
# File Helpers
# ===================================================================
def write_text_atomic(path, text):
    """Write text to path via a temp file in the same directory and os.replace."""
    directory = os.path.dirname(os.path.abspath(path))
    fd, temp_path = tempfile.mkstemp(
        dir=directory,
        prefix=f".{os.path.basename(path)}.",
        suffix='.tmp'
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='\n') as f:
            f.write(text)
        # mkstemp creates 0600; keep the mode of the file being replaced
        if os.path.exists(path):
            shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise

# ===================================================================
