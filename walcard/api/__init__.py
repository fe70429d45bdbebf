# walcard/api/__init__.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from walcard.api.routers import auth, cart, favorites, health, orders
from walcard.context import AppContext, build_context
from walcard.utils.logging import get_logger

logger = get_logger(__name__)


def create_app(context: AppContext | None = None) -> FastAPI:
    ctx = context or build_context()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # get_current_user dziala tylko po pierwszym get_session
        # get_session robi zapytania HTTP, nie blokujemy petli zdarzen
        session = await run_in_threadpool(ctx.session_service.get_session)
        logger.info(f"Startup session: {session.user_id if session else 'none'}")
        yield

    app = FastAPI(title="Walcard Storefront", version="1.0.0", lifespan=lifespan)
    app.state.context = ctx

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(cart.router)
    app.include_router(orders.router)
    app.include_router(favorites.router)

    return app
