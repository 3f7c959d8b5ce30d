from flask_socketio import emit

from kneading import get_machine, socketio
from kneading.services.game import WrongSceneError


def handle_connect(auth=None):
    get_machine().ensure_started()
    emit('connected', {'message': 'Connected to /ws'})
    # Late joiners draw the current screen straight away
    emit('scene_update', get_machine().snapshot())


def handle_disconnect(*args):
    pass


def handle_tap(data=None):
    get_machine().tap()


def handle_form_update(data):
    if not _is_fields(data):
        return
    try:
        get_machine().update_form(data or {})
    except WrongSceneError as exc:
        emit('error', {'message': str(exc)})


def handle_form_submit(data):
    if not _is_fields(data):
        return
    try:
        error = get_machine().submit_form(data or {})
    except WrongSceneError as exc:
        emit('error', {'message': str(exc)})
        return
    if error:
        emit('error', {'message': error})


def _is_fields(data) -> bool:
    if data is None or isinstance(data, dict):
        return True
    emit('error', {'message': 'Entry fields must be an object'})
    return False


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('tap', handle_tap, namespace=namespace)
        socketio.on_event('form_update', handle_form_update, namespace=namespace)
        socketio.on_event('form_submit', handle_form_submit, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
