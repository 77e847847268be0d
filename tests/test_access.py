import json
from unittest.mock import MagicMock

import google.auth
import google.auth.exceptions
import pytest

from gwshelper import access
from gwshelper.access import GWSAccess
from gwshelper.errors import AuthenticationError, ConfigError

DOCS = "https://www.googleapis.com/auth/documents"
DRIVE = "https://www.googleapis.com/auth/drive"


@pytest.fixture
def session(tmp_path) -> GWSAccess:
    """A private session pointed at files that don't exist yet."""
    s = GWSAccess()
    s.client_secrets = tmp_path / "credentials.json"
    s.cred_cache = tmp_path / "token.json"
    return s


def fake_creds(scopes) -> MagicMock:
    creds = MagicMock()
    creds.valid = True
    creds.scopes = scopes
    creds.service_account_email = "robot@project.iam.gserviceaccount.com"
    return creds


def test_get_scope():
    assert(GWSAccess.get_scope("docs") == DOCS)
    assert(GWSAccess.get_scope("https://www.googleapis.com/auth/tasks") == "https://www.googleapis.com/auth/tasks")
    assert(GWSAccess.get_scope("bogus") == "")


def test_resolve_scopes():
    assert(GWSAccess.resolve_scopes("docs") == [DOCS])
    assert(GWSAccess.resolve_scopes(["docs", DOCS, "drive"]) == [DOCS, DRIVE])
    assert(GWSAccess.resolve_scopes(None) == [])
    with pytest.raises(ConfigError):
        GWSAccess.resolve_scopes(["docs", "sheets-of-paper"])


def test_config_round_trip(session, tmp_path):
    session.config = {"secrets": tmp_path / "key.json", "scopes": ["docs"], "service_account": True,
                      "port": 8080, "server": "127.0.0.1"}
    config = session.config
    assert(config["secrets"] == str(tmp_path / "key.json"))
    assert(config["cache"] == str(tmp_path / "token.json"))
    assert(config["scopes"] == [DOCS])
    assert(config["service_account"] is True)
    assert(config["port"] == 8080)
    assert(config["server"] == "127.0.0.1")


def test_append_scopes_while_disconnected(session):
    assert(session.append_scopes("docs", "drive"))
    assert(session.append_scopes("docs"))
    assert(session.scopes == [DOCS, DRIVE])
    assert(not session.connected)


def test_connect_without_scopes(session):
    assert(not session.connect())


def test_service_account_connect(session, monkeypatch):
    creds = fake_creds([DOCS])
    from_file = MagicMock(return_value=creds)
    monkeypatch.setattr(access.service_account.Credentials, "from_service_account_file", from_file)
    session.use_service_account = True
    session.scopes = ["docs"]
    assert(session.connect())
    from_file.assert_called_once_with(str(session.client_secrets), scopes=[DOCS])
    creds.refresh.assert_called_once()
    assert(session.session_scopes == [DOCS])
    # service accounts don't use the token cache
    assert(not session.cred_cache.exists())


def test_service_account_bad_key(session, monkeypatch):
    monkeypatch.setattr(access.service_account.Credentials, "from_service_account_file",
                        MagicMock(side_effect=FileNotFoundError("no such file")))
    session.use_service_account = True
    session.scopes = ["docs"]
    with pytest.raises(AuthenticationError):
        session.connect()


def test_service_account_token_refused(session, monkeypatch):
    creds = fake_creds([DOCS])
    creds.refresh.side_effect = google.auth.exceptions.RefreshError("invalid_grant")
    monkeypatch.setattr(access.service_account.Credentials, "from_service_account_file",
                        MagicMock(return_value=creds))
    session.use_service_account = True
    session.scopes = ["docs"]
    with pytest.raises(AuthenticationError, match="service account token"):
        session.connect()


def test_get_service_builds_once(session, monkeypatch):
    monkeypatch.setattr(access.service_account.Credentials, "from_service_account_file",
                        MagicMock(return_value=fake_creds([DOCS])))
    build = MagicMock(return_value="docs-service")
    monkeypatch.setattr(access, "build", build)
    session.use_service_account = True
    session.scopes = ["docs"]
    assert(session.get_service("docs", "v1") == "docs-service")
    assert(session.get_service("docs", "v1") == "docs-service")
    build.assert_called_once()
    assert(build.call_args.args == ("docs", "v1"))
    assert("docs:v1" in session.services)


def test_get_service_without_credentials(session, monkeypatch):
    monkeypatch.setattr(google.auth, "default",
                        MagicMock(side_effect=google.auth.exceptions.DefaultCredentialsError("none")))
    session.scopes = ["docs"]
    with pytest.raises(AuthenticationError):
        session.get_service("docs", "v1")


def test_default_credentials_fallback(session, monkeypatch):
    creds = fake_creds([DOCS])
    default = MagicMock(return_value=(creds, "project"))
    monkeypatch.setattr(google.auth, "default", default)
    session.scopes = ["docs"]
    assert(session.connect())
    default.assert_called_once_with(scopes=[DOCS])


def test_token_cache_missing_scopes_is_removed(session, monkeypatch):
    session.cred_cache.write_text(json.dumps({"token": "t", "refresh_token": "r", "scopes": [DRIVE]}))
    monkeypatch.setattr(google.auth, "default",
                        MagicMock(side_effect=google.auth.exceptions.DefaultCredentialsError("none")))
    session.scopes = ["docs"]
    assert(not session.connect())
    assert(not session.cred_cache.exists())


def user_creds(scopes, valid=True) -> MagicMock:
    creds = fake_creds(scopes)
    creds.valid = valid
    creds.refresh_token = "refresh-token"
    creds.to_json.return_value = json.dumps({"token": "t", "refresh_token": "refresh-token", "scopes": scopes})
    return creds


def write_cache(session, scopes, mode=0o600) -> None:
    session.cred_cache.write_text(json.dumps({"token": "t", "refresh_token": "refresh-token", "scopes": scopes}))
    session.cred_cache.chmod(mode)


def test_token_cache_covering_scopes(session, monkeypatch):
    write_cache(session, [DOCS, DRIVE])
    from_file = MagicMock(return_value=user_creds([DOCS]))
    monkeypatch.setattr(access.Credentials, "from_authorized_user_file", from_file)
    flow = MagicMock()
    monkeypatch.setattr(access.InstalledAppFlow, "from_client_secrets_file", flow)
    session.scopes = ["docs"]
    assert(session.connect())
    from_file.assert_called_once_with(str(session.cred_cache.resolve()), [DOCS])
    flow.assert_not_called()


def test_expired_token_is_refreshed(session, monkeypatch):
    write_cache(session, [DOCS])
    creds = user_creds([DOCS], valid=False)

    def refresh(request):
        creds.valid = True
    creds.refresh.side_effect = refresh
    monkeypatch.setattr(access.Credentials, "from_authorized_user_file", MagicMock(return_value=creds))
    session.scopes = ["docs"]
    assert(session.connect())
    creds.refresh.assert_called_once()
    assert(json.loads(session.cred_cache.read_text())["scopes"] == [DOCS])
    assert(session.cred_cache.stat().st_mode & 0o777 == 0o600)


def test_refused_refresh_removes_cache(session, monkeypatch):
    write_cache(session, [DOCS])
    creds = user_creds([DOCS], valid=False)
    creds.refresh.side_effect = google.auth.exceptions.RefreshError("invalid_grant")
    monkeypatch.setattr(access.Credentials, "from_authorized_user_file", MagicMock(return_value=creds))
    monkeypatch.setattr(google.auth, "default",
                        MagicMock(side_effect=google.auth.exceptions.DefaultCredentialsError("none")))
    session.scopes = ["docs"]
    assert(not session.connect())
    assert(not session.cred_cache.exists())


def test_installed_app_flow(session, monkeypatch):
    session.client_secrets.write_text(json.dumps({"installed": {}}))
    flow = MagicMock()
    flow.run_local_server.return_value = user_creds([DOCS])
    from_secrets = MagicMock(return_value=flow)
    monkeypatch.setattr(access.InstalledAppFlow, "from_client_secrets_file", from_secrets)
    session.config = {"scopes": ["docs"], "port": 8765}
    assert(session.connect())
    from_secrets.assert_called_once_with(str(session.client_secrets), [DOCS])
    kwargs = flow.run_local_server.call_args.kwargs
    assert(kwargs["host"] == "localhost")
    assert(kwargs["port"] == 8765)
    assert(session.cred_cache.is_file())
    assert(session.cred_cache.stat().st_mode & 0o777 == 0o600)


def test_saved_cache_is_made_private(session, monkeypatch):
    # an existing cache written with looser permissions is tightened on save
    write_cache(session, [DOCS], mode=0o644)
    monkeypatch.setattr(access.Credentials, "from_authorized_user_file",
                        MagicMock(return_value=user_creds([DOCS])))
    session.scopes = ["docs"]
    assert(session.connect())
    assert(session.cred_cache.stat().st_mode & 0o777 == 0o600)
