#!/usr/bin/env python3

import sys
import time
import argparse

import config
import core
from healthcheck import SERVICES, service_url, run_healthcheck
from logger import setup_logging, set_level, colorize
from util import (
    PathPair, PathValidationError, normalize_path,
    check_docker, is_docker_daemon_running, resolve_timezone, printable
)

logger = setup_logging('media-stack-setup')

# ===================================================================
# Prompts
# ===================================================================
def confirm(question, default=False, input_func=input):
    """Ask a yes/no question. --yes answers every question with yes."""
    if config.ASSUME_YES:
        logger.info(f"{question} yes (--yes)")
        return True

    suffix = '[Y/n]' if default else '[y/N]'
    while True:
        answer = input_func(f"{question} {suffix}: ").strip().lower()
        if not answer:
            return default
        if answer in ('y', 'yes'):
            return True
        if answer in ('n', 'no'):
            return False
        print("Please answer 'y' or 'n'.")

def prompt_path(label, example, input_func=input):
    """Prompt until a non-empty path is entered. Returns the normalized path."""
    while True:
        raw = input_func(f"{label} (e.g. {example}): ")
        try:
            return normalize_path(raw)
        except PathValidationError:
            print(colorize(f"{label} cannot be empty. Please try again.", 'red'))

def acquire_paths(base_path=None, media_path=None, input_func=input) -> PathPair:
    """Use the command line values where valid, prompting for anything missing."""
    try:
        base = normalize_path(base_path) if base_path is not None else None
    except PathValidationError:
        logger.warning("--base-path is empty, asking instead")
        base = None
    try:
        media = normalize_path(media_path) if media_path is not None else None
    except PathValidationError:
        logger.warning("--media-path is empty, asking instead")
        media = None

    if base is None:
        base = prompt_path("Base path for container config", "C:\\docker", input_func)
    if media is None:
        media = prompt_path("Media path for movies, TV and downloads", "D:\\media", input_func)

    return PathPair.from_input(base, media)

# ===================================================================
# Stages
# ===================================================================
def check_prerequisites(input_func=input):
    """Returns False only when docker is missing and the user declines to continue."""
    logger.info("Checking for Docker...")
    found, detail = check_docker()
    if found:
        logger.info(f"[OK] {detail}", extra={'status': '[OK]'})
        if is_docker_daemon_running() is False:
            logger.warning("Docker is installed but its daemon does not appear to be running - start Docker Desktop before deploying.")
        return True

    logger.warning(f"Docker was not found: {detail}")
    logger.warning("Install Docker Desktop (https://www.docker.com/products/docker-desktop) before deploying the stack.")
    return confirm("Continue setup without Docker?", default=False, input_func=input_func)

def print_next_steps(env_file, paths):
    print()
    print(colorize("=" * 60, 'cyan'))
    print(colorize("Next steps".center(60), 'bold'))
    print(colorize("=" * 60, 'cyan'))
    print(f"1. Edit {printable(env_file)} and replace the VPN credentials with your provider's.")
    print("2. Get a Plex claim token from https://www.plex.tv/claim and set PLEX_CLAIM")
    print("   (tokens expire after 4 minutes, so do this right before step 4).")
    print("3. Optional: set CLOUDFLARE_TUNNEL_TOKEN to expose Overseerr through a tunnel.")
    print("4. Start the stack:  docker compose up -d")
    print("   With the tunnel:  docker compose --profile tunnel up -d")
    print("5. Open the web UIs:")
    for name, port, path in SERVICES:
        print(f"     {name:<13} {service_url(port, path)}")
    print("6. Verify everything is up:  python main.py --check-services")
    if paths is not None:
        print()
        print(f"Config folders live in {printable(paths.base_path)}, media and downloads in {printable(paths.media_path)}.")
    print(colorize("=" * 60, 'cyan'))

def run(args, input_func=input):
    config.DRY_RUN = args.dry_run
    config.ASSUME_YES = args.yes
    if args.log_level:
        config.LOG_LEVEL = args.log_level
        set_level(args.log_level)

    if args.check_services:
        return run_healthcheck()

    if config.DRY_RUN:
        logger.warning("===== DRY RUN MODE - NO CHANGES WILL BE MADE =====")
        config.show_config_summary()
    logger.info(f"===== Media Stack Setup Started ({time.strftime('%Y-%m-%d %H:%M:%S')}) =====")

    errors, warnings = config.validate_config()
    for warning in warnings:
        logger.warning(warning)
    for error in errors:
        logger.error(f"Configuration problem: {error}")

    # Stage 1: prerequisites
    if args.skip_docker_check:
        logger.info("Skipping Docker check (--skip-docker-check)")
    elif not check_prerequisites(input_func):
        logger.error("Setup cancelled: Docker is required.")
        return 1

    # Stage 2: paths
    paths = acquire_paths(args.base_path, args.media_path, input_func)
    logger.info(f"Base path: {paths.base_path}")
    logger.info(f"Media path: {paths.media_path}")

    # Stage 3: directories
    manifest = core.build_manifest(paths)
    core.materialize_directories(manifest)

    # Stage 4: .env
    env_file = args.env_file or config.ENV_FILE
    timezone = resolve_timezone()
    logger.info(f"Timezone: {timezone}")
    values = core.build_env_values(paths, timezone)
    core.generate_env_file(
        env_file, values,
        confirm=lambda question: confirm(question, default=False, input_func=input_func)
    )

    print_next_steps(env_file, paths)
    logger.info(f"===== Media Stack Setup Finished ({time.strftime('%Y-%m-%d %H:%M:%S')}) =====")
    return 0

def build_parser():
    parser = argparse.ArgumentParser(
        description='Prepare folders and the .env file for the Docker media stack',
        epilog='''
Examples:
  %(prog)s                                              # Interactive setup
  %(prog)s --base-path C:\\docker --media-path D:\\media  # No path prompts
  %(prog)s --dry-run                                    # Show what would be created
  %(prog)s --check-services                             # Probe the running stack
        ''',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--base-path', help='Root folder for container config (prompted if omitted)')
    parser.add_argument('--media-path', help='Root folder for media and downloads (prompted if omitted)')
    parser.add_argument('--skip-docker-check', action='store_true', help='Do not check for a Docker installation')
    parser.add_argument('--env-file', help=f'Environment file to generate (default: {config.ENV_FILE})')
    parser.add_argument('--dry-run', action='store_true', help='Run without creating folders or writing files')
    parser.add_argument('--yes', '-y', action='store_true', help='Answer yes to every confirmation prompt')
    parser.add_argument('--check-services', action='store_true', help='Probe the web UI of every service and exit')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Override LOG_LEVEL')
    return parser

def main(argv=None, input_func=input):
    args = build_parser().parse_args(argv)
    try:
        return run(args, input_func)
    except (KeyboardInterrupt, EOFError):
        print()
        logger.warning("Setup aborted.")
        return 130

# ===================================================================
# Main Execution Logic
# ===================================================================
if __name__ == "__main__":
    sys.exit(main())
