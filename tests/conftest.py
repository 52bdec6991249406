import os
import sys
import tempfile
from pathlib import Path

# Settings are read on first import; keep the module-level app's DB out of the repo.
os.environ.setdefault("DB_PATH", os.path.join(tempfile.mkdtemp(prefix="charger-qc-"), "import.db"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")

TESTS_ROOT = Path(__file__).resolve().parent
if str(TESTS_ROOT) not in sys.path:
    sys.path.insert(0, str(TESTS_ROOT))

import pytest
from fastapi.testclient import TestClient

from charger_qc.main import create_app
from helpers import PASSWORD


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "qc.db")


@pytest.fixture
def app(db_path):
    return create_app(db_path=db_path)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(app):
    def _make(email, role="technician", password=PASSWORD):
        return app.state.identity.register(email, password, role)
    return _make
