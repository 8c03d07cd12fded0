"""Hosted entry point for the trace player."""

from trace_playback.core.settings import Settings, configure_logging
from trace_playback.visualization.dash_app import app

server = app.server  # expose Flask server for gunicorn fallback

if __name__ == "__main__":
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app.run(host="0.0.0.0", debug=False, port=settings.port)
