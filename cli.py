#!/usr/bin/env python3
"""Overall CLI - sync repositories, scan local checkouts and serve the dashboard API."""
import argparse
import logging
import os
import sys


def setup_logging(log_level: str):
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _open_store():
    from overall.config import Config
    from overall.core.store import Store

    return Store(Config.DATABASE_URL)


def _orchestrator(store, settings):
    from overall.core.sync import SyncOrchestrator
    from overall.gateway import GhCliGateway, GitLocalScanner

    return SyncOrchestrator(store, GhCliGateway(), GitLocalScanner(), repo_limit=settings.github.repo_limit)


def _load_settings():
    from overall.config import Config
    from overall.core.settings import load_settings

    return load_settings(Config.SETTINGS_FILE)


def _export(store, output=None):
    from overall.config import Config
    from overall.core.snapshot import SNAPSHOT_FILENAME, write_snapshot

    path = output or os.path.join(Config.STATIC_DIR, SNAPSHOT_FILENAME)
    write_snapshot(store, path)
    return path


def _finish(report, store):
    """Print the sync report, export the snapshot and exit non-zero on any failure."""
    print(report.summary())
    path = _export(store)
    print(f"Snapshot written to {path}")
    if report.has_failures:
        sys.exit(1)


def cmd_init_db(args):
    """Create the database schema, optionally dropping existing tables first."""
    from overall.config import Config
    from overall.models.base import init_db

    setup_logging(args.log_level)

    if args.reset and not args.yes:
        response = input("This will delete ALL synced data, groups and local roots! Continue? (yes/no): ")
        if response.lower() != 'yes':
            print("Aborted.")
            return

    init_db(Config.DATABASE_URL, reset=args.reset)
    print(f"✓ Database {'reset' if args.reset else 'initialized'} at {Config.DATABASE_URL}")


def cmd_serve(args):
    """Start the API server."""
    from overall.app import create_app
    from overall.config import Config

    setup_logging(args.log_level)

    host = args.host or '127.0.0.1'
    port = args.port or Config.PORT
    debug = args.debug if args.debug is not None else Config.DEBUG

    logger = logging.getLogger(__name__)
    logger.info(f"Starting Overall server on {host}:{port}")

    app = create_app()
    app.run(debug=debug, host=host, port=port)


def cmd_sync(args):
    """Sync all repositories of the given or configured owners."""
    setup_logging(args.log_level)

    settings = _load_settings()
    owners = args.owner or settings.github.owners
    if not owners:
        print("No owners given and none configured. Use --owner or add github.owners to the settings file.")
        sys.exit(2)

    store = _open_store()
    report = _orchestrator(store, settings).sync_owners(
        owners,
        limit=args.limit or settings.github.repo_limit,
        incremental=args.incremental,
    )
    _finish(report, store)


def cmd_sync_repo(args):
    """Refresh one repository."""
    setup_logging(args.log_level)

    store = _open_store()
    report = _orchestrator(store, _load_settings()).sync_repository(args.repo_id)
    _finish(report, store)


def cmd_scan_local(args):
    """Scan enabled local roots for checkouts."""
    setup_logging(args.log_level)

    store = _open_store()
    report = _orchestrator(store, _load_settings()).scan_local(prune=args.prune, fetch=args.fetch)
    _finish(report, store)


def cmd_add_root(args):
    """Register a directory to scan for checkouts."""
    setup_logging(args.log_level)

    path = os.path.abspath(os.path.expanduser(args.path))
    root = _open_store().add_local_repo_root(path)
    print(f"✓ Added local root {root.id}: {root.path}")


def cmd_list(args):
    """List stored repositories with their priority."""
    from overall.core.priority import RepoPriority, repo_status_priority

    setup_logging(args.log_level)

    store = _open_store()
    repos = store.list_repositories()
    if not repos:
        print("No repositories stored yet. Run 'sync' first.")
        return

    for repo in repos:
        priority = repo_status_priority(store.list_branches(repo.id), store.get_local_repo_status(repo.id))
        pushed = repo.pushed_at.strftime('%Y-%m-%d') if repo.pushed_at else '-'
        print(f"{RepoPriority(priority).name:<14} {repo.id:<40} {repo.language or 'Unknown':<12} {pushed}")


def cmd_export(args):
    """Write the snapshot file."""
    setup_logging(args.log_level)

    path = _export(_open_store(), args.output)
    print(f"✓ Snapshot written to {path}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Overall - track branches, pull requests and local checkouts across repositories',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create the database
  %(prog)s init-db

  # Sync two owners
  %(prog)s sync --owner acme --owner acme-labs --limit 20

  # Register a checkout directory and scan it
  %(prog)s add-root ~/src/github
  %(prog)s scan-local --fetch

  # Start the API server
  %(prog)s serve --port 8080
"""
    )

    # Global options
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Set the logging level (default: INFO)'
    )

    # Create subparsers for commands
    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        required=True
    )

    init_parser = subparsers.add_parser('init-db', help='Create the database schema')
    init_parser.add_argument('--reset', action='store_true', help='Drop all tables and recreate them (DANGEROUS!)')
    init_parser.add_argument('--yes', action='store_true', help='Skip the --reset confirmation prompt')
    init_parser.set_defaults(func=cmd_init_db)

    serve_parser = subparsers.add_parser('serve', help='Start the API server')
    serve_parser.add_argument('--host', help='Host to bind to (default: 127.0.0.1)')
    serve_parser.add_argument('--port', type=int, help='Port to bind to (default: from config)')
    serve_parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    serve_parser.add_argument('--no-debug', dest='debug', action='store_false', help='Disable debug mode')
    serve_parser.set_defaults(func=cmd_serve, debug=None)

    sync_parser = subparsers.add_parser('sync', help='Sync repositories from GitHub')
    sync_parser.add_argument('--owner', action='append', help='Owner to sync (repeatable; default: settings file)')
    sync_parser.add_argument('--limit', type=int, help='Repositories per owner (default: settings file)')
    sync_parser.add_argument('--incremental', action='store_true',
                             help='Only refresh repositories pushed since the last sync')
    sync_parser.set_defaults(func=cmd_sync)

    sync_repo_parser = subparsers.add_parser('sync-repo', help='Refresh a single repository')
    sync_repo_parser.add_argument('repo_id', help='Repository id (owner/name)')
    sync_repo_parser.set_defaults(func=cmd_sync_repo)

    scan_parser = subparsers.add_parser('scan-local', help='Scan local checkouts')
    scan_parser.add_argument('--prune', action='store_true', help='Forget checkouts that were not found')
    scan_parser.add_argument('--fetch', action='store_true', help='Run git fetch in each checkout first')
    scan_parser.set_defaults(func=cmd_scan_local)

    root_parser = subparsers.add_parser('add-root', help='Register a directory of checkouts')
    root_parser.add_argument('path', help='Directory whose subdirectories are checkouts')
    root_parser.set_defaults(func=cmd_add_root)

    list_parser = subparsers.add_parser('list', help='List stored repositories')
    list_parser.set_defaults(func=cmd_list)

    export_parser = subparsers.add_parser('export', help='Write the dashboard snapshot')
    export_parser.add_argument('--output', help='Output path (default: <static dir>/repos.json)')
    export_parser.set_defaults(func=cmd_export)

    # Parse arguments
    args = parser.parse_args()

    from overall.core.errors import OverallError

    # Execute the command
    try:
        args.func(args)
    except OverallError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
