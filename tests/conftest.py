"""
Pytest configuration and shared fixtures.
"""

import tempfile
import shutil
import pytest

from overall.core.settings import Settings, GitHubSettings
from overall.core.store import Store
from overall.core.sync import SyncOrchestrator
from overall.gateway import FakeGateway, FakeLocalScanner


@pytest.fixture
def temp_dir():
    """Fixture that provides a temporary directory and cleans it up after test"""
    tmp = tempfile.mkdtemp()
    yield tmp
    shutil.rmtree(tmp)


@pytest.fixture
def store(temp_dir):
    """Fixture that provides a store on a fresh SQLite database file"""
    store = Store(f"sqlite:///{temp_dir}/test.db")
    yield store
    store.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def scanner():
    return FakeLocalScanner()


@pytest.fixture
def orchestrator(store, gateway, scanner):
    return SyncOrchestrator(store, gateway, scanner)


@pytest.fixture
def app(store, gateway, scanner, temp_dir):
    """
    Create and configure a test Flask app.

    The app runs against the test store and the fake gateways, syncs owner
    'acme' by default and writes snapshots under the temp directory.
    """
    from overall.app import create_app

    flask_app = create_app(
        store=store,
        gateway=gateway,
        scanner=scanner,
        settings=Settings(github=GitHubSettings(owners=['acme'], repo_limit=10)),
        static_dir=f"{temp_dir}/static",
    )
    flask_app.config['TESTING'] = True

    yield flask_app


@pytest.fixture
def client(app):
    """
    Create a Flask test client.

    Automatically depends on the 'app' fixture.
    """
    return app.test_client()
