#!/usr/bin/env python3

import os
import typing
from dataclasses import dataclass

import config
from logger import setup_logging
from util import to_container_path, write_text_atomic

logger = setup_logging('media-stack-setup-core')

if typing.TYPE_CHECKING:
    from util import PathPair

# ===================================================================
# Directory Manifest
# ===================================================================
# One config directory per managed service, under the base root
SERVICE_CONFIG_DIRS = ('plex', 'radarr', 'sonarr', 'prowlarr', 'overseerr', 'qbittorrent')
# The VPN sidecar keeps its state in a bare directory
VPN_DIR = 'gluetun'
# Library and download layout, under the media root
MEDIA_DIRS = (
    'media/movies',
    'media/tv',
    'downloads/movies',
    'downloads/tv',
    'downloads/incomplete',
)

CREATED = 'created'
EXISTED = 'existed'
FAILED = 'failed'

def build_manifest(paths: 'PathPair') -> typing.List[str]:
    """
    Builds the ordered list of directories to create.

    param paths: Normalized base and media roots.
    return: Base-rooted entries first (service configs, then the VPN directory),
            followed by the media-rooted entries. Duplicates are dropped.
    """
    base = paths.base_path
    media = paths.media_path

    entries = [f"{base}/{service}/config" for service in SERVICE_CONFIG_DIRS]
    entries.append(f"{base}/{VPN_DIR}")
    entries.extend(f"{media}/{sub}" for sub in MEDIA_DIRS)

    return list(dict.fromkeys(entries))

# ===================================================================
# Directory Materialization
# ===================================================================
@dataclass(frozen=True)
class DirectoryOutcome:
    path: str
    status: str
    reason: str = ''

@dataclass(frozen=True)
class DirectoryReport:
    outcomes: typing.Tuple[DirectoryOutcome, ...] = ()

    def add(self, outcome: DirectoryOutcome) -> 'DirectoryReport':
        return DirectoryReport(self.outcomes + (outcome,))

    def _count(self, status):
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def created(self) -> int:
        return self._count(CREATED)

    @property
    def existing(self) -> int:
        return self._count(EXISTED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def total(self) -> int:
        return len(self.outcomes)

def ensure_directory(path: str) -> DirectoryOutcome:
    """Create path (and missing parents) unless it already exists. Never raises."""
    try:
        if os.path.isdir(path):
            return DirectoryOutcome(path, EXISTED)

        if config.DRY_RUN:
            logger.info(f"[DRY RUN] Would create directory: {path}")
            return DirectoryOutcome(path, CREATED)

        os.makedirs(path, exist_ok=True)
        return DirectoryOutcome(path, CREATED)
    except (OSError, ValueError) as e:
        return DirectoryOutcome(path, FAILED, str(e))

def materialize_directories(manifest: typing.Iterable[str]) -> DirectoryReport:
    """
    Ensures every manifest entry exists, in order.

    A failed entry is recorded and processing moves on to the next one,
    so the returned report always holds one outcome per entry.
    """
    report = DirectoryReport()
    for path in manifest:
        outcome = ensure_directory(path)
        report = report.add(outcome)

        if outcome.status == CREATED:
            logger.info(f"[CREATED] {path}", extra={'status': '[CREATED]'})
        elif outcome.status == EXISTED:
            logger.info(f"[EXISTS]  {path}", extra={'status': '[EXISTS]'})
        else:
            logger.error(f"[FAILED]  {path}: {outcome.reason}", extra={'status': '[FAILED]'})

    logger.info(
        f"Directories: {report.created} created, {report.existing} already existed, "
        f"{report.failed} failed ({report.total} total)"
    )
    if report.failed:
        logger.warning("Some directories could not be created - create them manually before starting the stack.")
    return report

# ===================================================================
# Environment File
# ===================================================================
WRITTEN = 'written'
SKIPPED = 'skipped'

# Placeholders that must be edited by hand before `docker compose up`
PLACEHOLDERS = {
    'VPN_SERVICE_PROVIDER': 'your_vpn_provider',
    'OPENVPN_USER': 'your_vpn_username',
    'OPENVPN_PASSWORD': 'your_vpn_password',
    'SERVER_COUNTRIES': 'United States',
    'PLEX_CLAIM': 'claim-xxxxxxxxxxxxxxxxxxxx',
    'CLOUDFLARE_TUNNEL_TOKEN': 'your_cloudflare_tunnel_token',
}

ENV_SECTIONS = (
    ('User / group identity for the linuxserver.io containers', ('PUID', 'PGID')),
    ('Timezone', ('TZ',)),
    ('Host paths as seen by Docker', ('BASE_PATH', 'MEDIA_SHARE')),
    ('VPN (gluetun) - replace with your provider credentials',
     ('VPN_SERVICE_PROVIDER', 'OPENVPN_USER', 'OPENVPN_PASSWORD', 'SERVER_COUNTRIES')),
    ('Plex claim token from https://www.plex.tv/claim (valid for 4 minutes)', ('PLEX_CLAIM',)),
    ('Cloudflare tunnel token (only used with --profile tunnel)', ('CLOUDFLARE_TUNNEL_TOKEN',)),
)

def build_env_values(paths: 'PathPair', timezone, puid=None, pgid=None, mount_root=None) -> typing.Dict[str, str]:
    """Collect every .env value in file order."""
    values = {
        'PUID': str(config.PUID if puid is None else puid),
        'PGID': str(config.PGID if pgid is None else pgid),
        'TZ': timezone,
        'BASE_PATH': to_container_path(paths.base_path, mount_root),
        'MEDIA_SHARE': to_container_path(paths.media_path, mount_root),
    }
    values.update(PLACEHOLDERS)
    return values

def render_env(values: typing.Dict[str, str]) -> str:
    """Render values as KEY=VALUE lines grouped under comment headers."""
    lines = [
        '# Media stack environment - generated by media-stack-setup',
        '# Edit the placeholder values below before running docker compose.',
    ]
    remaining = dict(values)
    for title, keys in ENV_SECTIONS:
        present = [key for key in keys if key in remaining]
        if not present:
            continue
        lines.append('')
        lines.append(f"# {title}")
        for key in present:
            lines.append(f"{key}={remaining.pop(key)}")

    if remaining:
        lines.append('')
        lines.append('# Other settings')
        lines.extend(f"{key}={value}" for key, value in remaining.items())

    return '\n'.join(lines) + '\n'

def generate_env_file(target, values, confirm) -> str:
    """
    Writes the rendered .env file.

    param target: Path of the file to write.
    param values: Mapping from build_env_values.
    param confirm: Callable taking a question, returning True to overwrite an existing file.
    return: WRITTEN, SKIPPED or FAILED. Errors are logged, never raised.
    """
    text = render_env(values)

    if config.DRY_RUN:
        action = 'overwrite' if os.path.exists(target) else 'write'
        logger.info(f"[DRY RUN] Would {action} {len(values)} settings to {target}")
        for line in text.splitlines():
            logger.debug(f"[DRY RUN]   {line}")
        return SKIPPED

    if os.path.exists(target):
        if not confirm(f"{target} already exists. Overwrite it?"):
            logger.info(f"Keeping existing {target} - environment file generation skipped.")
            return SKIPPED

    try:
        write_text_atomic(target, text)
    # ValueError covers paths the filesystem accepted but UTF-8 cannot encode
    except (OSError, ValueError) as e:
        logger.warning(f"Could not write {target}: {e}")
        return FAILED

    logger.info(f"[WRITTEN] {target}", extra={'status': '[WRITTEN]'})
    return WRITTEN

# ===================================================================
