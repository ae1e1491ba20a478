import json
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from kiosk_app.app import create_app
from kiosk_app.lib.config import Config
from kiosk_app.lib.database import configure_database, init_db
from kiosk_app.lib.services.storage_service import StorageService

KL = ZoneInfo('Asia/Kuala_Lumpur')

TEST_CONFIG = {
    "server": {"host": "localhost", "port": 8050, "secret_key": "test-secret"},
    "logging": {
        "console": {
            "enabled": False,
            "level": "INFO",
            "format": "%(name)s - %(levelname)s - %(message)s",
            "date_format": "%Y-%m-%d %H:%M:%S"
        },
        "file": {
            "enabled": False,
            "level": "DEBUG",
            "format": "%(name)s - %(levelname)s - %(message)s",
            "date_format": "%Y-%m-%d %H:%M:%S",
            "log_dir": "logs",
            "filename": "kiosk.log",
            "max_bytes": 1048576,
            "backup_count": 1
        }
    },
    "database": {"database_url": "sqlite://"},
    "kiosk": {
        "name": "Artemis",
        "staff_passcode": "2024",
        "timezone": "Asia/Kuala_Lumpur",
        "default_language": "en"
    },
    "debug": False
}


class FakeClock:
    """Settable wall clock for the storage service"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)

    def set(self, *args):
        self.now = datetime(*args, tzinfo=KL)


@pytest.fixture
def clock():
    # A Wednesday morning
    return FakeClock(datetime(2024, 5, 15, 10, 30, tzinfo=KL))


@pytest.fixture
def database():
    configure_database('sqlite://')
    init_db()
    yield


@pytest.fixture
def storage(database, clock):
    return StorageService(tz=KL, clock=clock)


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps(TEST_CONFIG))
    return path


@pytest.fixture
def config(config_path):
    return Config(str(config_path))


@pytest.fixture
def server(config, clock):
    app = create_app(config, StorageService(tz=config.kiosk.get_tz(), clock=clock))
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(server):
    return server.test_client()
