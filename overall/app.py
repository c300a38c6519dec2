import logging
import os
from typing import Optional

from flask import Flask, current_app

from overall.config import Config
from overall.core.groups import GroupManager
from overall.core.settings import Settings, load_settings
from overall.core.snapshot import SNAPSHOT_FILENAME, write_snapshot
from overall.core.store import Store
from overall.core.sync import SyncOrchestrator
from overall.gateway import VcsGateway, LocalScanner, GhCliGateway, GitLocalScanner

logger = logging.getLogger(__name__)


def create_app(store: Optional[Store] = None, gateway: Optional[VcsGateway] = None,
               scanner: Optional[LocalScanner] = None, settings: Optional[Settings] = None,
               static_dir: Optional[str] = None) -> Flask:
    """
    Build the Flask app around explicitly constructed collaborators.

    Anything not passed in is built from Config: a store on DATABASE_URL, the
    gh and git gateways, the settings file and the static directory.
    """
    from overall.routes import groups_bp, repos_bp, pull_requests_bp, local_repos_bp

    app = Flask(__name__, static_folder=None)
    app.config.from_object(Config)

    if store is None:
        store = Store(app.config['DATABASE_URL'], echo=app.config['DEBUG'])
    if settings is None:
        settings = load_settings(app.config['SETTINGS_FILE'])

    app.config['STORE'] = store
    app.config['GATEWAY'] = gateway if gateway is not None else GhCliGateway()
    app.config['SCANNER'] = scanner if scanner is not None else GitLocalScanner()
    app.config['SETTINGS'] = settings
    if static_dir is not None:
        app.config['STATIC_DIR'] = static_dir
    logger.info(f"Writing snapshots to {app.config['STATIC_DIR']}")

    # Register blueprints
    app.register_blueprint(groups_bp)
    app.register_blueprint(repos_bp)
    app.register_blueprint(pull_requests_bp)
    app.register_blueprint(local_repos_bp)

    return app


def get_store() -> Store:
    return current_app.config['STORE']


def get_gateway() -> VcsGateway:
    return current_app.config['GATEWAY']


def get_settings() -> Settings:
    return current_app.config['SETTINGS']


def get_group_manager() -> GroupManager:
    return GroupManager(get_store())


def get_orchestrator() -> SyncOrchestrator:
    """Orchestrator over the app's store and gateways, limited by the settings file"""
    settings = get_settings()
    return SyncOrchestrator(
        get_store(),
        get_gateway(),
        current_app.config['SCANNER'],
        repo_limit=settings.github.repo_limit,
    )


def snapshot_path() -> str:
    return os.path.join(current_app.config['STATIC_DIR'], SNAPSHOT_FILENAME)


def regenerate_snapshot():
    """Rewrite repos.json in the static directory"""
    write_snapshot(get_store(), snapshot_path())
