from typing import Optional


def schedule_participant_removal(app, session, sid: str, delay: Optional[float] = None) -> None:
    """Remove a dropped connection's participant after the grace period.

    - A delay of 0 (or less) removes immediately
    - The removal runs on a Socket.IO background task and only fires if the
      connection id is still gone and still registered (see GameSession.expire)
    """
    if delay is None:
        delay = float(app.config.get('DISCONNECT_GRACE_SEC', 5))

    if delay <= 0:
        removed = session.expire(sid)
        app.logger.info(f"[grace-skip] sid={sid} removed={removed}")
        return

    socketio = session.gateway.socketio
    app.logger.info(f"[grace-set] sid={sid} delay={delay}s")

    def _worker(expected_sid: str, wait: float):
        socketio.sleep(wait)
        removed = session.expire(expected_sid)
        app.logger.info(f"[grace-fire] sid={expected_sid} removed={removed}")

    socketio.start_background_task(_worker, sid, delay)
