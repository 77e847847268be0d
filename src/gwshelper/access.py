from collections.abc import Iterable
from pathlib import Path
import json
import logging
import os

import google.auth
import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build, Resource
import googleapiclient.discovery_cache as gws_discovery_cache

from .errors import AuthenticationError, ConfigError

logger = logging.getLogger(__name__)


class GWSAccess():
    """
    Class encapsulating authenticated access to Google Workspace.
    See https://developers.google.com/workspace/guides/create-credentials#choose_the_access_credential_that_is_right_for_you
    for an overview of what you'll need.  Point the object at either an OAuth
    client secrets file or a service account key file.  For OAuth it will
    trigger the confirmation screens once, after that the token cache is used
    and refreshed.
    Scopes are expected to be added by the helper modules as they need them and
    may trigger a reconnect.

    It makes no sense to have multiple authenticated sessions per application so
    there is a module singleton, `gws`, and the helper modules pull their
    services from it.
    """

    __SCOPES = {
        "docs": "https://www.googleapis.com/auth/documents",
        "docs-ro": "https://www.googleapis.com/auth/documents.readonly",
        "drive-file": "https://www.googleapis.com/auth/drive.file",
        "drive": "https://www.googleapis.com/auth/drive",
        "drive-ro": "https://www.googleapis.com/auth/drive.readonly",
        "calendar": "https://www.googleapis.com/auth/calendar",
        "calendar-ro": "https://www.googleapis.com/auth/calendar.readonly",
        "events": "https://www.googleapis.com/auth/calendar.events",
        "events-ro": "https://www.googleapis.com/auth/calendar.events.readonly",
        "openid": "openid",
        "email": "email",
        "profile": "profile",
        "userinfo-email": "https://www.googleapis.com/auth/userinfo.email",
        "userinfo-profile": "https://www.googleapis.com/auth/userinfo.profile"
    }
    __SCOPE_URL_PREFIX = "https://www.googleapis.com/"

    __DEFAULT_AUTH_PROMPT_MSG = "Please visit this URL to authorize gwshelper: {url}"
    __DEFAULT_AUTH_FLOW_SUCCESS_MSG = "Authorization complete, you may close this window."
    __DEFAULT_SECRETS = Path.home() / ".gwshelper" / "credentials.json"
    __DEFAULT_CACHE = Path.home() / ".gwshelper" / "token.json"

    def __init__(self) -> None:
        self.reset()

    def __bool__(self) -> bool:
        """True if we are connected and authenticated"""
        return self.connected

    def __str__(self) -> str:
        if self.connected:
            return f"Connected:{str(self.session_scopes)}"
        return f"Disconnected:{str(self.__scopes)}"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    @classmethod
    def get_scope(cls, scope: str) -> str:
        """
        Get a scope based on simplified label.
        A raw URL will also be accepted, anything else gives "".
        """
        s = str(scope)
        sc = cls.__SCOPES.get(s, "")
        if not sc and s.startswith(cls.__SCOPE_URL_PREFIX):
            sc = s
        return sc

    @classmethod
    def resolve_scopes(cls, value: None|str|Iterable) -> list[str]:
        """
        Translate a label, URL or list of them into scope URLs.
        Unknown labels are a configuration problem so raise rather than drop.
        """
        if value is None:
            return []
        vals = [value] if isinstance(value, str) or not isinstance(value, Iterable) else value
        slist = []
        for v in vals:
            s = cls.get_scope(str(v))
            if not s:
                raise ConfigError(f"Unknown scope: {v}")
            if s not in slist:
                slist.append(s)
        return slist

    @property
    def client_secrets(self) -> Path:
        """
        Path to the credentials file as provided by Google, either the OAuth client
        secrets or the service account key depending on use_service_account.
        """
        return self.__secrets

    @client_secrets.setter
    def client_secrets(self, value: Path|str) -> None:
        val = value if isinstance(value, Path) else Path(str(value))
        if val != self.__secrets:
            self.__secrets = val
            if self.connected:
                self.connect()

    @property
    def cred_cache(self) -> Path:
        """
        Path to local token cache to not have to do full authentication each time.
        """
        return self.__cache

    @cred_cache.setter
    def cred_cache(self, value: Path|str):
        val = value if isinstance(value, Path) else Path(str(value))
        if val != self.__cache:
            self.__cache = val
            if self.connected:
                self.connect()

    @property
    def use_service_account(self) -> bool:
        return self.__use_service_account

    @use_service_account.setter
    def use_service_account(self, value: bool) -> None:
        v = bool(value)
        if v != self.__use_service_account:
            self.__use_service_account = v
            if self.connected:
                self.connect()

    def clear(self):
        """Drop the session but keep the configuration."""
        self.__creds = None
        self.__services = {}

    @property
    def connected(self) -> bool:
        return bool(self.__creds) and bool(self.__creds.valid)

    @property
    def session_scopes(self) -> list[str]:
        """
        Scopes authenticated by Google for this session.
        This differs to self.scopes as that is what is requested or to be requested.
        Service account credentials report what they were created with.
        """
        if self.connected:
            return list(self.__creds.scopes or [])
        return []

    @property
    def scopes(self) -> list[str]:
        """
        The scopes requested or to be requested on next authentication sequence.
        """
        return self.__scopes

    @scopes.setter
    def scopes(self, value: None|list[str]|str) -> None:
        """
        Override with a new list of scopes.  Reconnects if the new list contains
        scopes that are not part of the current session.
        """
        self.__scopes = self.resolve_scopes(value)
        if self.__scopes and self.connected:
            self.refresh()
        else:
            self.clear()

    def append_scopes(self, *args) -> bool:
        """
        Add to the current scope list.  The helper modules add the scopes
        they require on import.
        """
        for s in self.resolve_scopes(args if len(args) != 1 else args[0]):
            if s not in self.__scopes:
                self.__scopes.append(s)
        return self.refresh()

    def scope_in_session(self, scope: str) -> bool:
        s = self.get_scope(scope)
        return bool(s) and self.connected and (s in self.session_scopes)

    @property
    def creds(self) -> Credentials|None:
        return self.__creds

    @property
    def services(self) -> dict[str, Resource]:
        return self.__services

    @property
    def config(self) -> dict:
        """
        Get all configuration state as a dict.
        Convenience for getting it all at once for pushing into a json, toml, etc, file.
        """
        return {
            'secrets': str(self.__secrets),
            'cache': str(self.__cache),
            'scopes': list(self.__scopes),
            'service_account': self.__use_service_account,
            'server': self.auth_server,
            'port': self.auth_port,
            'timezone': self.timezone
        }

    @config.setter
    def config(self, config: dict) -> None:
        """
        Set configuration state from a dict, see gwshelper.config.AuthConfig.
        Anything not present is left as is.
        """
        reconnect = False
        v = config.get('port', None)
        if v is not None:
            self.auth_port = int(v)
        v = config.get('server', None)
        if v is not None:
            self.auth_server = str(v)
        v = config.get('scopes', [])
        if v:
            self.__scopes = self.resolve_scopes(v)
            reconnect = True
        v = config.get('cache', None)
        if v is not None:
            self.__cache = Path(v)
            reconnect = True
        v = config.get('secrets', None)
        if v is not None:
            self.__secrets = Path(v)
            reconnect = True
        v = config.get('service_account', None)
        if v is not None:
            self.__use_service_account = bool(v)
            reconnect = True
        v = config.get('timezone', None)
        if v is not None:
            self.timezone = str(v)
        v = config.get('auth_prompt_msg', None)
        if v is not None:
            self.auth_prompt_msg = str(v)
        v = config.get('flow_success_msg', None)
        if v is not None:
            self.auth_flow_success_msg = str(v)
        if reconnect and self.connected:
            self.connect()

    def reset(self) -> None:
        """
        Reset all connection state to defaults.
        """
        self.__secrets = self.__DEFAULT_SECRETS
        self.__cache = self.__DEFAULT_CACHE
        self.__discovery_cache = gws_discovery_cache.autodetect()
        self.__creds = None
        self.__scopes = []
        self.__services = {}
        self.__use_service_account = False
        self.auth_server = 'localhost'
        self.auth_port = 0
        self.auth_prompt_msg = self.__DEFAULT_AUTH_PROMPT_MSG
        self.auth_flow_success_msg = self.__DEFAULT_AUTH_FLOW_SUCCESS_MSG
        # zone for new calendar events, None leaves it to the calendar helpers' default
        self.timezone = None

    def refresh(self) -> bool:
        """
        If requested scopes are not all in the current session, reconnect.
        """
        scopes_accounted = all(s in self.session_scopes for s in self.__scopes)
        if self.connected and not scopes_accounted:
            return self.connect()
        return True

    def connect(self) -> bool:
        """
        Establish a new authentication session.
        Service accounts read the key file and fetch a token.  OAuth goes through
        the token cache first and only falls back to the browser flow when the
        cache is missing, stale or for a narrower set of scopes.
        """
        self.clear()
        if not self.__scopes:
            logger.warning("connect() with no scopes requested, nothing to do")
            return False
        requested_scopes = list(self.__scopes)
        if self.__use_service_account:
            self.__creds = self._service_account_creds(requested_scopes)
            return self.connected

        self.__creds = self._cached_creds(requested_scopes)
        if not self.connected and self.__creds and self.__creds.refresh_token:
            try:
                self.__creds.refresh(Request())
            except google.auth.exceptions.RefreshError as e:
                logger.warning("failed to refresh stored creds: %s, deleting token cache and re-authorizing", e)
            if not self.connected:
                self.__creds = None
                self.__cache.unlink(missing_ok=True)

        if not self.connected:
            if self.__secrets.is_file():
                flow = InstalledAppFlow.from_client_secrets_file(str(self.__secrets), requested_scopes)
                self.__creds = flow.run_local_server(host=self.auth_server, port=self.auth_port,
                                                     authorization_prompt_message=self.auth_prompt_msg,
                                                     success_message=self.auth_flow_success_msg)
            else:
                self.__creds = self._default_creds(requested_scopes)
                return self.connected

        if self.connected:
            self._save_cache()
        return self.connected

    def _service_account_creds(self, scopes: list[str]) -> service_account.Credentials:
        try:
            creds = service_account.Credentials.from_service_account_file(str(self.__secrets), scopes=scopes)
        except (OSError, ValueError) as e:
            raise AuthenticationError(f"unable to read service account file {self.__secrets}: {e}") from e
        try:
            creds.refresh(Request())
        except google.auth.exceptions.RefreshError as e:
            raise AuthenticationError(f"error when getting service account token: {e}") from e
        logger.info("authenticated with service account %s", creds.service_account_email)
        return creds

    def _cached_creds(self, scopes: list[str]) -> Credentials|None:
        """
        Load the token cache if it covers the requested scopes, otherwise remove it.
        """
        if not self.__cache.is_file():
            return None
        cf = self.__cache.resolve()
        try:
            with open(cf, 'r', encoding='utf-8') as f:
                cached_scopes = json.load(f).get('scopes', [])
        except (OSError, ValueError) as e:
            logger.warning("unreadable token cache %s: %s", cf, e)
            cf.unlink(missing_ok=True)
            return None
        if not all(s in cached_scopes for s in scopes):
            logger.info("token cache %s lacks requested scopes, re-authorizing", cf)
            cf.unlink(missing_ok=True)
            return None
        return Credentials.from_authorized_user_file(str(cf), scopes)

    def _default_creds(self, scopes: list[str]):
        """
        Final hail mary, looks at GOOGLE_APPLICATION_CREDENTIALS and the other
        cloud default locations.
        """
        try:
            creds, _ = google.auth.default(scopes=scopes)
        except google.auth.exceptions.DefaultCredentialsError:
            logger.warning("no credentials file at %s and no application default credentials", self.__secrets)
            return None
        if not creds.valid:
            try:
                creds.refresh(Request())
            except google.auth.exceptions.RefreshError as e:
                logger.warning("application default credentials could not be refreshed: %s", e)
                return None
        return creds

    def _save_cache(self) -> None:
        """Token cache holds secrets so keep it private to the user."""
        path = self.__cache
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            # the mode given to os.open only applies to a new file
            os.chmod(path, 0o600)
            f.write(self.__creds.to_json())
        logger.debug("saved token cache to %s", path)

    def get_service(self, name: str, version: str) -> Resource:
        """
        Build the requested service if not already available, connecting if required.
        """
        if not self.connected:
            self.connect()
        if not self.connected:
            raise AuthenticationError(f"unable to authenticate for {name} {version}, check the credentials file "
                                      f"{self.__secrets}")
        id = f'{name}:{version}'
        s = self.__services.get(id, None)
        if s is None:
            s = build(name, version, credentials=self.__creds, cache=self.__discovery_cache)
            self.__services[id] = s
            logger.debug("built %s service", id)
        return s


gws = GWSAccess()
