import uvicorn

from app.config.settings import Settings
from app.database.connection import close_pool, init_pool
from app.logging.logger import Log
from app.web.app import create_app
from app.web.container import build_container


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> serve HTTP."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        app = create_app(build_container(settings))
        Log.info(f"Serving on {settings.host}:{settings.port} ({settings.app_env})")
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    finally:
        close_pool()


if __name__ == "__main__":
    main()
