# Thin entrypoint exposing Dash `app` and Flask `server`
from sellerdash import app, server  # noqa: F401
from sellerdash import config


if __name__ == "__main__":  # pragma: no cover
    # For production: use gunicorn with the bundled config, e.g.:
    # gunicorn app:server -c gunicorn.conf.py
    app.run(host="0.0.0.0", port=config.PORT, debug=config.DEBUG)
