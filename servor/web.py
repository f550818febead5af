"""
HTTP surface: control page, the two directional endpoints, metrics and a
thread dump for debugging.
"""

import logging
import sys
import threading
import traceback

from flask import Flask, Response, jsonify, request

from servor.drivers import DriverError
from servor.metrics import Metrics

logger = logging.getLogger(__name__)

NOT_FOUND = "404 page not found\n"

INDEX_HTML = """<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>Servor</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>
    html { align-items: center; display: flex; height: 100%; justify-content: center; width: 100%; }
    .panel { border: solid 5px; display: inline-block; font-family: sans-serif;
             font-size: 4em; font-weight: 500; line-height: 1; padding: .5em; }
    .arrows { display: flex; justify-content: space-around; }
    .arrows div { cursor: pointer; user-select: none; }
  </style>
</head>
<body>
  <div class="panel">
    <div>servor</div>
    <div class="arrows">
      <div id="left">&larr;</div>
      <div id="right">&rarr;</div>
    </div>
  </div>
  <script>
    function move(direction) {
      fetch('/api/' + direction, {method: 'POST'});
    }
    document.getElementById('left').onclick = function (e) { move('left'); e.preventDefault(); };
    document.getElementById('right').onclick = function (e) { move('right'); e.preventDefault(); };
    window.addEventListener('keydown', function (e) {
      if (e.key === 'ArrowLeft' || e.key === 'Left') {
        move('left');
      } else if (e.key === 'ArrowRight' || e.key === 'Right') {
        move('right');
      } else {
        return;
      }
      e.preventDefault();
    });
  </script>
</body>
</html>
"""


def thread_dump() -> str:
    """Stack of every live thread, most recent call last."""
    frames = sys._current_frames()
    chunks = []
    for thread in threading.enumerate():
        frame = frames.get(thread.ident)
        chunks.append(f"thread {thread.name} (ident={thread.ident}, daemon={thread.daemon}):\n")
        if frame is not None:
            chunks.extend(traceback.format_stack(frame))
        chunks.append("\n")
    return "".join(chunks)


def create_app(servo, metrics: Metrics = None) -> Flask:
    """Build the Flask app around an already constructed servo controller."""
    if metrics is None:
        metrics = Metrics()

    app = Flask(__name__)
    app.config["SERVO"] = servo
    app.config["METRICS"] = metrics

    def move(direction):
        try:
            position = direction()
        except DriverError as e:
            logger.error("servo command failed: %s", e)
            return jsonify(status="error"), 500
        return jsonify(status="ok", position=position)

    @app.route("/", provide_automatic_options=False)
    @app.route("/index.html", provide_automatic_options=False)
    def index():
        return Response(INDEX_HTML, mimetype="text/html")

    @app.route("/api/left", methods=["POST"], provide_automatic_options=False)
    def left():
        return move(servo.move_left)

    @app.route("/api/right", methods=["POST"], provide_automatic_options=False)
    def right():
        return move(servo.move_right)

    @app.route("/metrics", provide_automatic_options=False)
    def expose_metrics():
        body, content_type = metrics.expose()
        return Response(body, content_type=content_type)

    @app.route("/debug/threads", provide_automatic_options=False)
    def debug_threads():
        return Response(thread_dump(), mimetype="text/plain")

    # Wrong method on a known path is reported as not found.
    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(_error):
        return Response(NOT_FOUND, status=404, mimetype="text/plain")

    # Unexpected failures still finish through after_request and get counted.
    @app.errorhandler(500)
    def internal_error(_error):
        return jsonify(status="error"), 500

    @app.after_request
    def count_request(response):
        rule = request.url_rule
        handler = rule.rule if rule is not None else "notfound"
        metrics.observe(response.status_code, handler, request.method)
        return response

    return app
