from flask import current_app, request
from flask_login import current_user

from imposter import socketio
from imposter.services.games.scheduler import schedule_participant_removal


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _session():
    return current_app.extensions['game_session']


def _identity():
    """Identity of the connecting browser, resolved once per connection."""
    if current_user.is_authenticated:
        return current_user.to_dict()
    return None


def handle_connect(auth=None):
    _session().connect(_get_sid(), _identity())


def handle_disconnect(reason=None):
    sid = _get_sid()
    session = _session()
    if session.connection_lost(sid):
        schedule_participant_removal(current_app._get_current_object(), session, sid)


def handle_join(data=None):
    _session().join(_get_sid(), data or {})


def handle_submit_drawing(data=None):
    _session().submit_artifact(_get_sid(), data)


def handle_player_question(text=None):
    _session().ask_question(_get_sid(), text)


def handle_request_task(data=None):
    _session().request_task(_get_sid())


def handle_start_round(data=None):
    _session().start_round(_get_sid(), data or {})


def handle_request_round_info(data=None):
    _session().request_round_info(_get_sid())


def handle_give_points(data=None):
    _session().grant_points(_get_sid(), data or {})


def handle_reveal_roles(data=None):
    _session().reveal_roles(_get_sid())


def handle_reveal_question(data=None):
    _session().reveal_task(_get_sid())


def handle_reveal_one(data=None):
    _session().reveal_one(_get_sid(), data)


def handle_set_host_id(data=None):
    _session().set_featured_stream(_get_sid(), data)


def handle_admin_answer(data=None):
    _session().answer_question(_get_sid(), data or {})


def handle_start_timer(data=None):
    _session().start_timer(_get_sid())


def handle_stop_timer(data=None):
    _session().stop_timer(_get_sid())


def handle_add_to_access_list(name=None):
    _session().add_to_access_list(_get_sid(), name)


def handle_remove_from_access_list(name=None):
    _session().remove_from_access_list(_get_sid(), name)


def handle_query_access_list(data=None):
    _session().query_access_list(_get_sid())


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    # participants
    'join': handle_join,
    'submitDrawing': handle_submit_drawing,
    'playerQuestion': handle_player_question,
    'requestTask': handle_request_task,
    # moderator
    'startRound': handle_start_round,
    'requestRoundInfo': handle_request_round_info,
    'givePoints': handle_give_points,
    'revealRoles': handle_reveal_roles,
    'revealQuestion': handle_reveal_question,
    'revealOne': handle_reveal_one,
    'setHostId': handle_set_host_id,
    'adminAnswer': handle_admin_answer,
    'startTimer': handle_start_timer,
    'stopTimer': handle_stop_timer,
    # administrator
    'addToAccessList': handle_add_to_access_list,
    'removeFromAccessList': handle_remove_from_access_list,
    'queryAccessList': handle_query_access_list,
    # names used by the first moderator console
    'admin_addWhitelist': handle_add_to_access_list,
    'admin_removeWhitelist': handle_remove_from_access_list,
    'admin_requestWhitelist': handle_query_access_list,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the given namespace."""
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=namespace)
