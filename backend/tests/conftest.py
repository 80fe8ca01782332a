import pytest
from fastapi.testclient import TestClient

from quantkit.main import create_app


@pytest.fixture()
def client(tmp_path):
    app = create_app(database_url=f"sqlite:///{tmp_path / 'runs.db'}")
    with TestClient(app) as c:
        yield c
