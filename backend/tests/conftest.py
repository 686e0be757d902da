import importlib

import pytest
from fastapi.testclient import TestClient


def _reload_app():
    # reload modules so that deps picks up the new env vars
    import smartnotes.api.deps
    import smartnotes.api.auth
    import smartnotes.api.notes
    import smartnotes.api.session
    import smartnotes.api.ai
    import smartnotes.main
    importlib.reload(smartnotes.api.deps)
    importlib.reload(smartnotes.api.auth)
    importlib.reload(smartnotes.api.notes)
    importlib.reload(smartnotes.api.session)
    importlib.reload(smartnotes.api.ai)
    importlib.reload(smartnotes.main)
    return smartnotes.main.app


@pytest.fixture()
def app_env(tmp_path, monkeypatch):
    # isolate data dir per test
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("JWT_SECRET", "dev-secret-for-tests")
    monkeypatch.setenv("JWT_EXP_MINUTES", "15")
    monkeypatch.setenv("AUTOSAVE_DEBOUNCE_MS", "50")
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("GROK_API_KEY", raising=False)
    return tmp_path


@pytest.fixture()
def client(app_env):
    return TestClient(_reload_app())


@pytest.fixture()
def live_client(app_env):
    """Client whose event loop stays up between requests, so autosave timers can fire."""
    with TestClient(_reload_app()) as c:
        yield c
