import hmac

from flask import Blueprint, current_app, jsonify, request

main = Blueprint('main', __name__)


def reset_session(session, transport, logger):
    """Clear participants and the seeker, then drop every live connection.

    The map survives; clients reconnecting afterwards start from spawn.
    """
    with session.lock:
        cleared = session.reset()
        closed = sorted(transport.connected_ids())
    # Outside the lock: each close runs the disconnect handler, which now finds nothing to remove
    for sid in closed:
        transport.close(sid)
    logger.info(f"[reset] cleared={len(cleared)} closed={len(closed)}")
    return cleared, closed


@main.route('/')
def index():
    return jsonify({
        'message': 'Hide-and-seek session server',
        'namespace': current_app.config.get('SOCKETIO_NAMESPACE', '/'),
    })


@main.route('/health')
def health():
    session = current_app.extensions['game_session']
    return jsonify({
        'status': 'ok',
        'participants': len(session.participant_ids()),
        'seekerId': session.seeker_id,
    })


@main.route('/state')
def state():
    return jsonify(current_app.extensions['game_session'].to_dict())


@main.route('/admin/reset', methods=['POST'])
def admin_reset():
    token = current_app.config.get('ADMIN_TOKEN')
    if token and not hmac.compare_digest(request.headers.get('X-Admin-Token', ''), token):
        return jsonify({'error': 'Invalid admin token'}), 403
    cleared, closed = reset_session(
        current_app.extensions['game_session'],
        current_app.extensions['game_transport'],
        current_app.logger,
    )
    return jsonify({'cleared': cleared, 'closed': closed})
