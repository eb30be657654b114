import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from .api.routes import router
from .core.config import Settings, settings as default_settings
from .core.errors import EngineError
from .core.events import EventHub
from .core.locks import LockRegistry
from .db.base import Base
from .db.session import SessionLocal
from .models import utcnow
from .services.tree_catalog import DEFAULT_TREE_TYPES, TreeType

logger = logging.getLogger(__name__)


def create_app(
    session_factory: Optional[sessionmaker] = None,
    *,
    config: Settings = default_settings,
    events: Optional[EventHub] = None,
    tree_catalog: Iterable[TreeType] = DEFAULT_TREE_TYPES,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    logging.basicConfig(level=config.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=app.state.session_factory.kw["bind"])
        logger.info("Database tables ready")
        yield

    app = FastAPI(title="Peachy Points API", version="0.3.0", lifespan=lifespan)
    app.state.settings = config
    app.state.session_factory = session_factory or SessionLocal
    # one lock registry per process: every ledger built for a request shares it
    app.state.locks = LockRegistry()
    app.state.events = events or EventHub()
    app.state.tree_catalog = tuple(tree_catalog)
    app.state.clock = clock

    @app.exception_handler(EngineError)
    async def engine_error_handler(request: Request, exc: EngineError):
        logger.info(f"{request.method} {request.url.path} -> {type(exc).__name__}({exc.reason})")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": str(exc.reason)})

    app.include_router(router)
    return app


app = create_app()
