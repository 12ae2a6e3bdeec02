from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkorm import LinkORM
from linkorm.log_settings import LinkORMLogger
from linkorm.settings import get_settings

from backend.errors import register_error_handlers
from backend.models import define_models
from backend.endpoints.users_endpoints import router as users_router
from backend.endpoints.tasks_endpoints import router as tasks_router


def create_app(orm: LinkORM = None) -> FastAPI:
    """
    Build the demo API around ``orm`` (a new one from settings when omitted),
    defining the user/task models and creating their tables.
    """
    settings = get_settings()
    if orm is None:
        LinkORMLogger.setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
        orm = LinkORM(settings=settings)

    define_models(orm)
    orm.sync()

    app = FastAPI(title=settings.APP_NAME, description=f"{settings.APP_NAME} demo API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.orm = orm

    register_error_handlers(app)
    app.include_router(users_router)
    app.include_router(tasks_router)
    return app
