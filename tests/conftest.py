import pytest
from leadcloser.main import app
from leadcloser.store import LeadStore


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    monkeypatch.setenv("LEADCLOSER_SETTINGS", str(tmp_path / "settings.json"))
    app.state.store = LeadStore()
    yield
