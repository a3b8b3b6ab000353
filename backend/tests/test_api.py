from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from imposter.auth import IdentityProviderError, TwitchIdentityProvider
from imposter.models import User
from conftest import login


def _location(res):
    return urlparse(res.headers['Location'])


class FakeProvider:
    def __init__(self, user=None, error=None):
        self.user = user
        self.error = error
        self.codes = []

    def authorize_url(self, state):
        return f'https://id.example/authorize?state={state}'

    def fetch_user(self, code):
        self.codes.append(code)
        if self.error:
            raise self.error
        return self.user


def _start_login(client):
    res = client.get('/auth/twitch')
    assert res.status_code == 302
    return parse_qs(_location(res).query)['state'][0]


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert res.get_json()['login'] == '/auth/twitch'


def test_index_serves_landing_page(flask_app, client, tmp_path):
    (tmp_path / 'index.html').write_text('<h1>landing</h1>')
    flask_app.config['STATIC_FOLDER'] = str(tmp_path)
    res = client.get('/')
    assert res.status_code == 200
    assert b'landing' in res.data


def test_player_requires_login(client):
    res = client.get('/player')
    assert res.status_code == 302
    assert _location(res).path == '/'


def test_player_on_access_list_is_sent_to_player_page(flask_app, client):
    login(flask_app, client, 'alice', 'Alice Wonder', 'http://img/a.png')
    res = client.get('/player')
    assert res.status_code == 302
    loc = _location(res)
    assert loc.path == '/player.html'
    assert parse_qs(loc.query) == {'username': ['Alice Wonder'], 'pfp': ['http://img/a.png']}


def test_player_not_on_access_list_is_turned_away(flask_app, client):
    login(flask_app, client, 'mallory')
    res = client.get('/player')
    assert _location(res).path == '/no-access.html'


def test_admin_may_always_play(flask_app, client):
    login(flask_app, client, 'host')
    assert _location(client.get('/player')).path == '/player.html'


def test_admin_page(flask_app, client, tmp_path):
    (tmp_path / 'admin.html').write_text('<h1>console</h1>')
    flask_app.config['PRIVATE_FOLDER'] = str(tmp_path)
    login(flask_app, client, 'alice')
    assert _location(client.get('/admin')).path == '/'

    other = flask_app.test_client()
    login(flask_app, other, 'HOST')
    res = other.get('/admin')
    assert res.status_code == 200
    assert b'console' in res.data


def test_session_state_is_moderator_only(flask_app, client):
    assert client.get('/api/session/state').status_code == 401
    login(flask_app, client, 'alice')
    assert client.get('/api/session/state').status_code == 403

    host = flask_app.test_client()
    login(flask_app, host, 'host')
    state = host.get('/api/session/state').get_json()
    assert state['players'] == {}
    assert state['round'] is None
    assert state['access_list'] == ['alice', 'bob', 'cara']


def test_login_start_redirects_to_provider(client):
    res = client.get('/auth/twitch')
    loc = _location(res)
    assert loc.netloc == 'id.twitch.tv'
    query = parse_qs(loc.query)
    assert query['client_id'] == ['client-id']
    assert query['response_type'] == ['code']
    with client.session_transaction() as sess:
        assert sess['oauth_state'] == query['state'][0]


def test_login_callback_sends_admin_to_console(flask_app, client):
    flask_app.extensions['identity_provider'] = FakeProvider(User('Host', 'The Host'))
    state = _start_login(client)
    res = client.get(f'/auth/twitch/callback?code=abc&state={state}')
    assert _location(res).path == '/admin'
    assert flask_app.extensions['user_store'].get('host').display_name == 'The Host'


def test_login_callback_sends_players_to_player_route(flask_app, client):
    provider = FakeProvider(User('alice', 'Alice'))
    flask_app.extensions['identity_provider'] = provider
    state = _start_login(client)
    res = client.get(f'/auth/twitch/callback?code=xyz&state={state}')
    assert _location(res).path == '/player'
    assert provider.codes == ['xyz']
    assert _location(client.get('/player')).path == '/player.html'


def test_login_callback_rejects_bad_state(flask_app, client):
    provider = FakeProvider(User('alice'))
    flask_app.extensions['identity_provider'] = provider
    _start_login(client)
    res = client.get('/auth/twitch/callback?code=abc&state=forged')
    assert _location(res).path == '/'
    assert provider.codes == []


def test_login_callback_provider_failure(flask_app, client):
    flask_app.extensions['identity_provider'] = FakeProvider(error=IdentityProviderError('boom'))
    state = _start_login(client)
    res = client.get(f'/auth/twitch/callback?code=abc&state={state}')
    assert _location(res).path == '/'
    assert _location(client.get('/player')).path == '/'


def test_logout(flask_app, client):
    assert client.post('/logout').status_code == 401
    login(flask_app, client, 'alice')
    assert client.post('/logout').get_json() == {'success': True}
    assert flask_app.extensions['user_store'].get('alice') is None
    assert _location(client.get('/player')).path == '/'


def test_twitch_provider_fetches_profile():
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.host == 'id.twitch.tv':
            return httpx.Response(200, json={'access_token': 'tok'})
        return httpx.Response(200, json={'data': [{
            'login': 'Alice',
            'display_name': 'AliceTV',
            'profile_image_url': 'http://img/a.png',
        }]})

    provider = TwitchIdentityProvider('cid', 'secret', 'http://cb', transport=httpx.MockTransport(handler))
    user = provider.fetch_user('code-1')
    assert (user.login, user.display_name, user.profile_image) == ('alice', 'AliceTV', 'http://img/a.png')
    assert b'code=code-1' in seen[0].content
    assert seen[1].headers['Authorization'] == 'Bearer tok'
    assert seen[1].headers['Client-Id'] == 'cid'


def test_twitch_provider_wraps_http_errors():
    provider = TwitchIdentityProvider(
        'cid', 'secret', 'http://cb',
        transport=httpx.MockTransport(lambda request: httpx.Response(400, json={'message': 'bad code'})),
    )
    with pytest.raises(IdentityProviderError):
        provider.fetch_user('nope')
