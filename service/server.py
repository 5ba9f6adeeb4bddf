import logging
import os

from flask import Flask, jsonify, request
from flask_cors import CORS

import config
from secretsolver.arithmetic import get_field
from secretsolver.consensus import classify_shares, recover
from secretsolver.errors import SecretSolverError, InvalidInput
from secretsolver.loader import parse_document, parse_int
from service.solve_tracker import SolveTracker

logger = logging.getLogger(__name__)

STATUS_CODES = {
    "InvalidInput": 400,
    "DivisionByZero": 422,
    "NonIntegerResult": 422,
    "InsufficientConsistentShares": 422,
}


def _read_request():
    data = request.get_json(silent=True)
    if data is None:
        raise InvalidInput("Request body must be a JSON object")
    shares, k = parse_document(data)
    options = {"field": get_field(data.get("arithmetic"))}
    if "min_votes" in data:
        options["min_votes"] = parse_int(data["min_votes"])
    return shares, k, options


def create_app(tracker=None):
    app = Flask(__name__)
    CORS(app)
    if tracker is None:
        tracker = SolveTracker()
    app.config["TRACKER"] = tracker

    def run(operation):
        request_id = os.urandom(8).hex()
        try:
            shares, k, options = _read_request()
            tracker.log_request_start(request_id, operation, len(shares), k)
            if operation == "solve":
                secret, classified = recover(shares, k, **options)
            else:
                classified = classify_shares(shares, k, **options)
        except SecretSolverError as e:
            kind = type(e).__name__
            logger.info("Request %s failed: %s", request_id, e)
            tracker.log_request_failure(request_id, e)
            return jsonify({
                "request_id": request_id,
                "error": str(e),
                "kind": kind
            }), STATUS_CODES.get(kind, 422)

        tracker.log_request_success(request_id, classified.authentic_ids(), classified.rejected_ids())
        body = classified.to_dict()
        body["request_id"] = request_id
        return jsonify(body)

    @app.route('/solve', methods=['POST'])
    def solve_secret():
        return run("solve")

    @app.route('/classify', methods=['POST'])
    def classify():
        return run("classify")

    @app.route('/status', methods=['GET'])
    def status():
        return jsonify({
            "status": "active",
            "arithmetic": config.Config.ARITHMETIC,
            "workers": config.Config.WORKERS,
            "max_combinations": config.Config.MAX_COMBINATIONS,
            "requests_logged": len(tracker.logs)
        })

    @app.route('/audit/<request_id>', methods=['GET'])
    def audit(request_id):
        log = tracker.get_log(request_id)
        if log:
            return jsonify(log)
        return jsonify({"error": "Request not found"}), 404

    return app


if __name__ == '__main__':
    create_app(SolveTracker(config.Config.AUDIT_LOG)).run(
        host=config.Config.SERVICE_HOST,
        port=config.Config.SERVICE_PORT,
        threaded=True
    )
