import secrets
from urllib.parse import urlencode

import httpx
from flask import Blueprint, current_app, jsonify, redirect, request, session
from flask_login import current_user, login_required, login_user, logout_user

from imposter.models import User

auth = Blueprint('auth', __name__)

TWITCH_AUTHORIZE_URL = 'https://id.twitch.tv/oauth2/authorize'
TWITCH_TOKEN_URL = 'https://id.twitch.tv/oauth2/token'
TWITCH_USERS_URL = 'https://api.twitch.tv/helix/users'


class IdentityProviderError(Exception):
    pass


class TwitchIdentityProvider:
    """OAuth authorization-code login against Twitch.

    Yields ``User`` objects carrying the login name, display name and
    profile image; nothing else about the account is used.
    """

    def __init__(self, client_id, client_secret, callback_url, timeout=10.0, transport=None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.timeout = timeout
        self.transport = transport

    def authorize_url(self, state: str) -> str:
        query = urlencode({
            'client_id': self.client_id,
            'redirect_uri': self.callback_url,
            'response_type': 'code',
            'scope': '',
            'state': state,
        })
        return f'{TWITCH_AUTHORIZE_URL}?{query}'

    def fetch_user(self, code: str) -> User:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                token_res = client.post(TWITCH_TOKEN_URL, data={
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                    'code': code,
                    'grant_type': 'authorization_code',
                    'redirect_uri': self.callback_url,
                })
                token_res.raise_for_status()
                access_token = token_res.json()['access_token']
                users_res = client.get(TWITCH_USERS_URL, headers={
                    'Authorization': f'Bearer {access_token}',
                    'Client-Id': self.client_id,
                })
                users_res.raise_for_status()
                profile = users_res.json()['data'][0]
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as exc:
            raise IdentityProviderError(f'Twitch login failed: {exc}') from exc
        return User(
            login=profile.get('login'),
            display_name=profile.get('display_name'),
            profile_image=profile.get('profile_image_url'),
        )


def _provider():
    return current_app.extensions['identity_provider']


def _users():
    return current_app.extensions['user_store']


@auth.route('/auth/twitch')
def login_start():
    state = secrets.token_urlsafe(16)
    session['oauth_state'] = state
    return redirect(_provider().authorize_url(state))


@auth.route('/auth/twitch/callback')
def login_callback():
    expected = session.pop('oauth_state', None)
    code = request.args.get('code')
    if not code or not expected or request.args.get('state') != expected:
        current_app.logger.warning('[login] rejected callback with missing code or bad state')
        return redirect('/')
    try:
        user = _provider().fetch_user(code)
    except IdentityProviderError as exc:
        current_app.logger.warning(f'[login] {exc}')
        return redirect('/')
    if not user.login:
        return redirect('/')
    login_user(_users().remember(user))
    current_app.logger.info(f'[login] login={user.login}')
    if current_app.extensions['game_session'].access_gate.is_administrator(user.login):
        return redirect('/admin')
    return redirect('/player')


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    login_name = current_user.login
    logout_user()
    _users().forget(login_name)
    return jsonify({'success': True})
