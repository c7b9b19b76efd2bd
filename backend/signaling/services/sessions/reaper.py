from signaling import socketio


def start_idle_reaper(app, router) -> bool:
    """Start the background sweep that ends idle sessions.

    - No-ops in TESTING mode (tests call ``router.reap_idle_sessions``)
    - No-ops when SESSION_IDLE_TIMEOUT_SEC is 0
    - Sweeps every SESSION_REAP_INTERVAL_SEC seconds
    """
    timeout = int(app.config.get('SESSION_IDLE_TIMEOUT_SEC', 0))
    if app.config.get('TESTING') or timeout <= 0:
        return False
    interval = max(1, int(app.config.get('SESSION_REAP_INTERVAL_SEC', 30)))

    def _worker():
        while True:
            socketio.sleep(interval)
            with app.app_context():
                reaped = router.reap_idle_sessions(timeout)
                if reaped:
                    app.logger.info(f"[reaper] ended {len(reaped)} idle session(s): {', '.join(reaped)}")

    app.logger.info(f"[reaper-start] timeout={timeout}s interval={interval}s")
    socketio.start_background_task(_worker)
    return True
