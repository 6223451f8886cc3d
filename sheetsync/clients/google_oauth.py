import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

import requests
from django.conf import settings
from django.utils import timezone

from sheetsync.errors import AuthorizationError

from .base import BaseClient

logger = logging.getLogger(__name__)

AUTH_URI = 'https://accounts.google.com/o/oauth2/v2/auth'
TOKEN_URI = 'https://oauth2.googleapis.com/token'

SCOPES = (
    'https://www.googleapis.com/auth/spreadsheets',
    'https://www.googleapis.com/auth/drive',
    'https://www.googleapis.com/auth/userinfo.email',
)


@dataclass(frozen=True)
class TokenGrant:
    access_token: str
    expires_at: datetime
    token_type: str = 'Bearer'
    refresh_token: Optional[str] = None

    def as_fields(self) -> dict:
        """Connector fields to write; an absent refresh token is not overwritten."""
        fields = {
            'access_token': self.access_token,
            'token_type': self.token_type,
            'expires_at': self.expires_at,
        }
        if self.refresh_token:
            fields['refresh_token'] = self.refresh_token
        return fields


class GoogleOAuthClient(BaseClient):
    def __init__(self, client_id=None, client_secret=None, redirect_uri=None):
        self.client_id = client_id or getattr(settings, 'GOOGLE_CLIENT_ID', '')
        self.client_secret = client_secret or getattr(settings, 'GOOGLE_CLIENT_SECRET', '')
        self.redirect_uri = redirect_uri or getattr(settings, 'GOOGLE_REDIRECT_URI', '')

    def make_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({'Accept': 'application/json'})
        return session

    def authorization_url(self, state=None):
        """Returns ``(url, state)``; the state guards the callback against replay."""
        state = state or secrets.token_urlsafe(24)
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': ' '.join(SCOPES),
            'access_type': 'offline',
            'prompt': 'consent',
            'state': state,
        }
        return f"{AUTH_URI}?{urlencode(params)}", state

    def exchange_code(self, code, timeout=None) -> TokenGrant:
        return self._token_request({
            'grant_type': 'authorization_code',
            'code': code,
            'redirect_uri': self.redirect_uri,
        }, timeout=timeout)

    def refresh(self, refresh_token, timeout=None) -> TokenGrant:
        if not refresh_token:
            raise AuthorizationError("No refresh token stored for this connector")
        return self._token_request({
            'grant_type': 'refresh_token',
            'refresh_token': refresh_token,
        }, timeout=timeout)

    def _token_request(self, data, timeout=None):
        payload = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            **data,
        }
        kwargs = {'data': payload}
        if timeout is not None:
            kwargs['timeout'] = timeout

        try:
            response = self.request(self.make_session(), 'POST', TOKEN_URI, **kwargs)
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Google token request (%s) failed: %s", data['grant_type'], exc)
            raise AuthorizationError(f"Token request failed: {exc}") from exc

        if 'access_token' not in body:
            raise AuthorizationError(f"Token response missing access_token: {body}")

        expires_in = int(body.get('expires_in', 3600))
        return TokenGrant(
            access_token=body['access_token'],
            expires_at=timezone.now() + timedelta(seconds=expires_in),
            token_type=body.get('token_type', 'Bearer'),
            refresh_token=body.get('refresh_token'),
        )
