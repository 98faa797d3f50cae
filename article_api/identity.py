"""
Identity verification against Firebase Authentication.

Callers present a Firebase ID token as ``Authorization: Bearer <token>``.
``FirebaseTokenVerifier`` checks its signature, issuer, audience and
expiry using Google's published certificates and returns the verified
``Identity``.  Anonymous requests carry ``None`` instead of an identity.

To create a token for manual testing, sign in through the Firebase client
SDK and read ``user.getIdToken()``.
"""
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Optional, Protocol

import cachecontrol
import google.auth.exceptions
import google.auth.transport.requests
import google.oauth2.id_token
import google.oauth2.service_account
import requests

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """The bearer token could not be verified."""


class CredentialsError(Exception):
    """The service credential bundle is missing or unusable."""


@dataclass(frozen=True)
class Identity:
    subject: str
    email: Optional[str] = None
    claims: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_claims(cls, claims: dict) -> "Identity":
        subject = claims.get("sub") or claims.get("user_id") or claims.get("uid")
        if not subject:
            raise InvalidTokenError("token has no subject claim")
        return cls(subject=str(subject), email=claims.get("email") or None, claims=dict(claims))


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> Identity:
        ...


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token of a ``Bearer`` Authorization header, else None."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip()


def load_service_credentials(path: str | Path) -> dict:
    """
    Read the service-account JSON bundle.

    The bundle must name the project and load as service-account
    credentials (client email, token URI and a parseable private key).
    """
    try:
        data = json.loads(Path(path).read_text())
    except FileNotFoundError as ex:
        raise CredentialsError(f"credentials file not found: {path}") from ex
    except (OSError, ValueError) as ex:
        raise CredentialsError(f"cannot parse credentials file {path}: {ex}") from ex
    if not isinstance(data, dict) or not data.get("project_id"):
        raise CredentialsError(f"credentials file {path} has no project_id")
    try:
        google.oauth2.service_account.Credentials.from_service_account_info(data)
    except (ValueError, google.auth.exceptions.GoogleAuthError) as ex:
        raise CredentialsError(f"credentials file {path} is not a usable service account: {ex}") from ex
    return data


class FirebaseTokenVerifier:
    """Verify Firebase ID tokens issued for one project.

    Google's signing certificates are fetched over a shared
    ``requests`` session wrapped in ``cachecontrol`` so they are only
    re-downloaded when their cache headers expire.  The session is not
    thread safe, so it is used under a lock.
    """

    def __init__(self, project_id: str, session: Optional[requests.Session] = None) -> None:
        self.project_id = project_id
        self._session = session
        self._lock = RLock()

    @classmethod
    def from_credentials_file(cls, path: str | Path) -> "FirebaseTokenVerifier":
        credentials = load_service_credentials(path)
        logger.info("Identity verifier configured for project %s", credentials["project_id"])
        return cls(credentials["project_id"])

    @contextmanager
    def _locked_session(self):
        with self._lock:
            if self._session is None:
                self._session = cachecontrol.CacheControl(requests.session())
            yield self._session

    def verify(self, token: str) -> Identity:
        if not token:
            raise InvalidTokenError("empty token")
        try:
            with self._locked_session() as session:
                request = google.auth.transport.requests.Request(session=session)
                claims = google.oauth2.id_token.verify_firebase_token(
                    token, request, audience=self.project_id
                )
        except (ValueError, google.auth.exceptions.GoogleAuthError) as ex:
            raise InvalidTokenError(str(ex)) from ex
        if not claims:
            raise InvalidTokenError("no claims returned")
        return Identity.from_claims(claims)
