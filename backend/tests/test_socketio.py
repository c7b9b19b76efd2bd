PIN = '123456'


def _events(sio_client, name=None):
    received = sio_client.get_received()
    if name is None:
        return received
    return [pkt for pkt in received if pkt['name'] == name]


def test_socket_connect_registers_connection(sio_factory):
    from signaling import router
    host = sio_factory()
    assert host.is_connected()
    assert len(router.connections) == 1


def test_full_pairing_scenario(sio_factory, registry):
    host, viewer, late_viewer = sio_factory(), sio_factory(), sio_factory()

    host.emit('create-session', {'pin': PIN})
    created = _events(host, 'session-created')
    assert created and created[0]['args'] == [{'pin': PIN}]

    viewer.emit('join-session', {'pin': PIN})
    joined = _events(viewer, 'session-joined')
    assert joined and joined[0]['args'] == [{'pin': PIN}]
    viewer_joined = _events(host, 'viewer-joined')
    assert len(viewer_joined) == 1
    viewer_id = viewer_joined[0]['args'][0]['viewerId']
    assert viewer_id == registry.get(PIN).viewer_id

    offer = {'type': 'offer', 'sdp': 'v=0\r\ns=-\r\nm=video 9 UDP/TLS/RTP/SAVPF 96\r\n'}
    host.emit('offer', {'pin': PIN, 'offer': offer})
    relayed = _events(viewer)
    assert relayed == [{'name': 'offer', 'args': [{'offer': offer}], 'namespace': '/'}]
    assert _events(late_viewer) == []
    assert _events(host) == []

    viewer.disconnect()
    assert [pkt['name'] for pkt in _events(host)] == ['viewer-disconnected']
    assert registry.get(PIN).viewer_id is None

    late_viewer.emit('join-session', {'pin': PIN})
    assert _events(late_viewer, 'session-joined')
    assert _events(host, 'viewer-joined')

    host.disconnect()
    assert [pkt['name'] for pkt in _events(late_viewer)] == ['host-disconnected']
    assert PIN not in registry


def test_duplicate_pin_reports_error(sio_factory):
    first, second = sio_factory(), sio_factory()
    first.emit('create-session', {'pin': PIN})
    second.emit('create-session', {'pin': PIN})
    errors = _events(second, 'error')
    assert errors[0]['args'] == [{'message': 'PIN already in use'}]


def test_join_invalid_pin_reports_error(sio_factory, registry):
    viewer = sio_factory()
    viewer.emit('join-session', {'pin': '000000'})
    errors = _events(viewer, 'error')
    assert errors[0]['args'] == [{'message': 'Invalid PIN'}]
    assert registry.pins() == []


def test_offer_without_viewer_reports_error(sio_factory):
    host, bystander = sio_factory(), sio_factory()
    host.emit('create-session', {'pin': PIN})
    _events(host)
    host.emit('offer', {'pin': PIN, 'offer': {'sdp': 'v=0'}})
    assert _events(host) == [{'name': 'error', 'args': [{'message': 'No viewer connected'}], 'namespace': '/'}]
    assert _events(bystander) == []


def test_answer_ice_and_touch_relay(sio_factory):
    host, viewer = sio_factory(), sio_factory()
    host.emit('create-session', {'pin': PIN})
    viewer.emit('join-session', {'pin': PIN})
    _events(host)
    _events(viewer)

    viewer.emit('answer', {'pin': PIN, 'answer': {'type': 'answer', 'sdp': 'v=0'}})
    candidate = {'sdpMid': '0', 'sdpMLineIndex': 0, 'candidate': 'candidate:0 1 UDP 1 10.0.0.1 9 typ host'}
    viewer.emit('ice-candidate', {'pin': PIN, 'candidate': candidate})
    viewer.emit('touch-event', {'pin': PIN, 'x': 0.5, 'y': 0.1, 'action': 'move'})

    received = _events(host)
    assert [(pkt['name'], pkt['args']) for pkt in received] == [
        ('answer', [{'answer': {'type': 'answer', 'sdp': 'v=0'}}]),
        ('ice-candidate', [{'candidate': candidate}]),
        ('touch-event', [{'x': 0.5, 'y': 0.1, 'action': 'move'}]),
    ]
    assert _events(viewer) == []


def test_end_session_notifies_both(sio_factory, registry):
    host, viewer = sio_factory(), sio_factory()
    host.emit('create-session', {'pin': PIN})
    viewer.emit('join-session', {'pin': PIN})
    _events(host)
    _events(viewer)

    host.emit('end-session')
    assert [pkt['name'] for pkt in _events(host)] == ['session-ended']
    assert [pkt['name'] for pkt in _events(viewer)] == ['session-ended']
    assert PIN not in registry


def test_pin_reusable_after_host_disconnect(sio_factory):
    host, replacement = sio_factory(), sio_factory()
    host.emit('create-session', {'pin': PIN})
    host.disconnect()
    replacement.emit('create-session', {'pin': PIN})
    assert _events(replacement, 'session-created')[0]['args'] == [{'pin': PIN}]
