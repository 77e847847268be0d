"""
Convenience helpers over the Google Workspace Python client for Docs,
Drive and Calendar.

Authentication is handled once by the `gws` session in access.py; the
helper modules pull their services from it.  Each helper is a single API
call, or a fetch plus a single batchUpdate when a document offset has to
be worked out first (see docs/locate.py).

Python dataclasses mirror the API resources and most of the logic is
translating between those and the raw dicts.
"""

from .access import gws
from .config import AuthConfig
from .errors import GWSHelperError
