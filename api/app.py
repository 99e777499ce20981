"""
Log-serving API.
Run: python -m api.app

Endpoints
- POST /api/write-log        body {level, message, status?} -> 201 / 400
- GET|POST /api/logs?from=&to= -> streamed JSON array of entries
"""

import os
import logging
from flask import Flask, Response, jsonify, request

from api.log_store import LogStore, load_config
from api.logger import StoreLogger

CONFIG = load_config()
API_CONFIG = CONFIG.get("api", {})


def create_app(store: LogStore = None) -> Flask:
    store = store or LogStore()
    app = Flask(__name__)
    app.config["LOG_STORE"] = store
    app.config["STORE_LOGGER"] = StoreLogger(store)
    oplog = app.config["STORE_LOGGER"]

    @app.route("/api/write-log", methods=["POST"])
    def write_log():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}
        level = body.get("level")
        message = body.get("message")
        if not level or not message:
            return jsonify({"error": "Level and message are required"}), 400

        oplog.record(level, message, body.get("status"))
        return jsonify({"message": "Log written successfully"}), 201

    @app.route("/api/logs", methods=["GET", "POST"])
    def logs():
        from_bound = request.args.get("from")
        to_bound = request.args.get("to")
        try:
            fh = store.open_reader()
        except OSError as e:
            oplog.error(f"Error opening log file: {e}")
            return jsonify({"error": "Internal Server Error"}), 500

        def generate():
            try:
                yield from store.stream(from_bound, to_bound, fh=fh)
            except OSError as e:
                # headers are already out; just end the stream
                oplog.error(f"Error streaming log file: {e}")

        response = Response(generate(), mimetype="application/json")
        if fh is not None:
            # covers responses whose body is never iterated
            response.call_on_close(fh.close)
        return response

    return app


def main():
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] [%(levelname)s] %(message)s")
    app = create_app()
    port = int(os.environ.get("API_PORT", API_CONFIG.get("port", 4000)))
    host = API_CONFIG.get("host", "0.0.0.0")
    app.config["STORE_LOGGER"].log(f"Log API running on PORT {port}")
    app.run(host=host, port=port)


if __name__ == "__main__":
    main()
