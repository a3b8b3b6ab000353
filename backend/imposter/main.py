import os
from urllib.parse import urlencode

from flask import Blueprint, current_app, jsonify, redirect, send_from_directory
from flask_login import current_user

main = Blueprint('main', __name__)


def _gate():
    return current_app.extensions['game_session'].access_gate


def _is_admin():
    return current_user.is_authenticated and _gate().is_administrator(current_user.login)


@main.route('/')
def index():
    static_folder = current_app.config.get('STATIC_FOLDER')
    if static_folder and os.path.isfile(os.path.join(static_folder, 'index.html')):
        return send_from_directory(static_folder, 'index.html')
    return jsonify({'message': 'Welcome to the Imposter Draw server!', 'login': '/auth/twitch'})


@main.route('/player')
def player():
    if not current_user.is_authenticated:
        return redirect('/')
    if not _gate().is_allowed(current_user.login):
        current_app.logger.info(f'[access] denied player page to {current_user.login}')
        return redirect('/no-access.html')
    query = urlencode({'username': current_user.display_name, 'pfp': current_user.profile_image or ''})
    return redirect(f'/player.html?{query}')


@main.route('/admin')
def admin():
    if not _is_admin():
        return redirect('/')
    return send_from_directory(current_app.config['PRIVATE_FOLDER'], 'admin.html')


@main.route('/api/session/state')
def session_state():
    if not current_user.is_authenticated:
        return jsonify({'error': 'Login required'}), 401
    if not _is_admin():
        return jsonify({'error': 'Moderator only'}), 403
    return jsonify(current_app.extensions['game_session'].state())
