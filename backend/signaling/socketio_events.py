from flask import request

from signaling import socketio, router


def _get_sid() -> str:
    return request.sid  # type: ignore


def handle_connect(auth=None):
    router.connect(_get_sid())


def handle_disconnect(reason=None):
    router.disconnect(_get_sid())


def _make_message_handler(message_type: str):
    def _handler(data=None):
        router.dispatch(_get_sid(), message_type, data)
    _handler.__name__ = f"handle_{message_type.replace('-', '_')}"
    return _handler


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``.

    One handler per signaling message type, each forwarding to the
    connection router with the sender's sid.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for message_type in router.message_types:
        socketio.on_event(message_type, _make_message_handler(message_type), namespace=namespace)
