from http import HTTPStatus
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

import staffdir.__main__ as launcher
from staffdir import main
from staffdir.config import Settings
from staffdir.database import wait_for_database
from staffdir.errors import DatabaseUnavailableError, RepositoryError
from staffdir.models import Base
from staffdir.repository import UserRepository

PAYLOAD = {"name": "Fail", "department": "QA", "email": "fail@example.com"}


def test_list_users_db_failure_returns_500(client, engine):
    """A missing table surfaces as 500 with the driver's message."""
    Base.metadata.drop_all(bind=engine)

    response = client.get("/users")

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert "no such table" in response.json()["error"]


@pytest.mark.parametrize(
    "method, path, repo_method",
    [
        ("post", "/users", "create_user"),
        ("put", "/users/1", "update_user"),
        ("delete", "/users/1", "delete_user"),
    ],
)
def test_repository_failure_returns_500(client, monkeypatch, method, path, repo_method):
    """Simulate a DB failure; the message is passed through to the client."""
    mock = MagicMock(side_effect=RepositoryError("connection reset by peer"))
    monkeypatch.setattr(UserRepository, repo_method, mock)

    kwargs = {"json": PAYLOAD} if method != "delete" else {}
    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "connection reset by peer"}
    assert mock.called


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/departments")

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert "error" in response.json()


def test_unexpected_exception_returns_500(app, monkeypatch):
    monkeypatch.setattr(UserRepository, "list_users", MagicMock(side_effect=ValueError("boom")))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/users")

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Internal server error"}


def test_startup_aborts_when_database_unreachable(settings, tmp_path, monkeypatch):
    """The app never reaches the serving state if every ping fails."""
    unreachable = create_engine(f"sqlite:///{tmp_path / 'missing' / 'staff.db'}")
    monkeypatch.setattr(
        main,
        "wait_for_database",
        lambda engine: wait_for_database(engine, sleep=lambda seconds: None),
    )
    app = main.create_app(settings=settings, engine=unreachable)

    with pytest.raises(DatabaseUnavailableError):
        with TestClient(app):
            pass


def test_launcher_exits_with_status_1_on_startup_failure(monkeypatch):
    monkeypatch.setattr(launcher, "run", MagicMock(side_effect=RuntimeError("port in use")))

    with pytest.raises(SystemExit) as excinfo:
        launcher.main()

    assert excinfo.value.code == 1


def test_run_starts_uvicorn_on_configured_host_and_port(monkeypatch):
    import uvicorn

    settings = Settings(
        _env_file=None,
        database_url="sqlite://",
        host="127.0.0.1",
        port=9123,
    )
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    uvicorn_run = MagicMock()
    monkeypatch.setattr(uvicorn, "run", uvicorn_run)

    main.run()

    uvicorn_run.assert_called_once()
    args, kwargs = uvicorn_run.call_args
    assert isinstance(args[0], FastAPI)
    assert args[0].title == settings.app_name
    assert kwargs == {"host": "127.0.0.1", "port": 9123}
