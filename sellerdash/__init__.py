from . import config
from .config import configure_logging
from .server import create_server, create_cache, create_app, register_api
from .auth import init_auth
from .data import set_cache
from .api import bp as api_blueprint
from .ui import serve_layout
from .callbacks import register_callbacks

# Assemble
configure_logging()
server = create_server()
cache = create_cache(server)
app = create_app(server)

# Init subsystems
init_auth(server)
set_cache(cache)
register_api(server, api_blueprint)
app.layout = serve_layout
register_callbacks(app)

__all__ = ["app", "server"]
