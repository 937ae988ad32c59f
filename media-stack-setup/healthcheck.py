#!/usr/bin/env python3
"""
Health check for the deployed media stack.
Probes each service's web UI. Returns exit code 0 if every
service answers, 1 if any of them is unreachable.
"""

import sys

import requests

import config
from logger import setup_logging

logger = setup_logging('media-stack-setup-health')

# name, port, path
SERVICES = (
    ('Plex', 32400, '/web'),
    ('Radarr', 7878, '/'),
    ('Sonarr', 8989, '/'),
    ('Prowlarr', 9696, '/'),
    ('Overseerr', 5055, '/'),
    ('qBittorrent', 8080, '/'),
    ('FlareSolverr', 8191, '/'),
)

def service_url(port, path, host=None):
    if host is None:
        host = config.SERVICE_HOST
    return f"http://{host}:{port}{path}"

def check_service(name, url, timeout=None):
    """Check if a service web UI is accessible and responsive"""
    if timeout is None:
        timeout = config.as_int(config.HEALTHCHECK_TIMEOUT, 5)
    try:
        response = requests.get(url, timeout=timeout)
        # The *arr apps answer 401 until you log in; that still means the service is up
        if response.status_code < 500:
            return True, f"{name} accessible (status {response.status_code})"
        else:
            return False, f"{name} returned status {response.status_code}"
    except requests.exceptions.RequestException as e:
        return False, f"{name} check failed: {e}"

def run_healthcheck(host=None):
    """Probe every service, log the results, and return an exit code."""
    unhealthy = []
    for name, port, path in SERVICES:
        ok, message = check_service(name, service_url(port, path, host))
        if ok:
            logger.info(f"HEALTHY: {message}")
        else:
            logger.error(f"UNHEALTHY: {message}")
            unhealthy.append(name)

    if unhealthy:
        logger.error(f"{len(unhealthy)} of {len(SERVICES)} services unreachable: {', '.join(unhealthy)}")
        return 1

    logger.info(f"All {len(SERVICES)} services are reachable")
    return 0

if __name__ == "__main__":
    sys.exit(run_healthcheck())
