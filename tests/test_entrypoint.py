import uvicorn

from kalkulator.__main__ import main
from kalkulator.core.settings import get_settings


def test_main_runs_the_app_with_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main()

    settings = get_settings()
    [(app, kwargs)] = calls
    assert app == "kalkulator.main:app"
    assert kwargs["host"] == settings.host
    assert kwargs["port"] == settings.port
    assert kwargs["log_level"] == settings.log_level.lower()
