import itertools
import os
import signal
import sys
import threading

from dotenv import load_dotenv
from flask import Flask, jsonify, request

load_dotenv()

from eventsink.logger import logger
from eventsink.ring import RingBuffer
from eventsink.sink import EventSink

HISTORY_SIZE = int(os.getenv('SSE_HISTORY_SIZE', 100))
KEEP_INTERVAL = float(os.getenv('SSE_KEEP_INTERVAL', 15.0))


def create_app(history_size: int = None, keep_interval: float = None) -> Flask:
    history = RingBuffer(HISTORY_SIZE if history_size is None else history_size)
    sink = EventSink(history, keep_interval=KEEP_INTERVAL if keep_interval is None else keep_interval)
    dispatch_lock = threading.Lock()
    ids = itertools.count(1)

    app = Flask(__name__)
    app.logger = logger
    app.extensions['event_sink'] = sink

    @app.route('/events', methods=['GET'])
    def events():
        last_event_id = request.headers.get('Last-Event-ID')
        logger.info('Client connected to /events (Last-Event-ID=%s)', last_event_id)
        with dispatch_lock:
            # a fresh stream per client; backlog only ever comes from history
            sink.reset()
            response = sink.get_response()
            if last_event_id:
                sink.replay_since(last_event_id)
        return response

    @app.route('/events', methods=['POST'])
    def publish():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify(error='expected a JSON object'), 400
        content = payload.get('content')
        if not isinstance(content, str):
            return jsonify(error="'content' is required and must be a string"), 400
        comments = payload.get('comments') or []
        if not isinstance(comments, list):
            return jsonify(error="'comments' must be a list of strings"), 400

        with dispatch_lock:
            event_id = payload.get('id')
            if event_id is None:
                event_id = str(next(ids))
            delivered = sink.dispatch_event(content, name=payload.get('name'), event_id=str(event_id),
                                            comments=[str(c) for c in comments])
        return jsonify(id=str(event_id), delivered=delivered), 202

    @app.route('/events/history', methods=['GET'])
    def history_list():
        with dispatch_lock:
            return jsonify([event.to_dict() for event in history])

    return app


if __name__ == '__main__':
    app = create_app()
    sink = app.extensions['event_sink']

    def shutdown_handler(sig: int = None, frame=None):
        logger.info('Shutdown initiated')
        sink.close('server shutdown')
        if sig is not None:
            sys.exit(0)

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    app.run(host=os.getenv('HOST', '0.0.0.0'), port=int(os.getenv('PORT', 9000)),
            debug=False, threaded=True, use_reloader=False)
