"""Pet Access FastAPI Application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pet_access import __version__
from pet_access.config import settings
from pet_access.core.access_grants.service import AccessGrantService
from pet_access.core.authorization import PetOwnerLookup
from pet_access.database import close_database, get_session_maker
from pet_access.logging_config import get_logger, setup_logging
from pet_access.middleware import CorrelationIdMiddleware
from pet_access.routers import grants, health, pets
from pet_access.services.pet_ownership import InMemoryPetRegistry, SqlPetOwnerLookup
from pet_access.stores.base import GrantStore
from pet_access.stores.memory import InMemoryGrantStore
from pet_access.stores.sql import SqlAlchemyGrantStore

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


def build_backends() -> tuple[GrantStore, PetOwnerLookup]:
    """Grant store and pet ownership lookup for the configured backend."""
    if settings.grant_store_backend == "postgres":
        session_maker = get_session_maker()
        return SqlAlchemyGrantStore(session_maker), SqlPetOwnerLookup(session_maker)
    return InMemoryGrantStore(), InMemoryPetRegistry()


def create_app(
    grant_store: GrantStore | None = None,
    pet_owners: PetOwnerLookup | None = None,
) -> FastAPI:
    """Build the application. Tests pass their own store and ownership lookup."""
    if grant_store is None or pet_owners is None:
        default_store, default_owners = build_backends()
        if grant_store is None:
            grant_store = default_store
        if pet_owners is None:
            pet_owners = default_owners

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Pet access API started",
            grant_store=type(grant_store).__name__,
        )
        yield
        logger.info("Shutting down pet access API...")
        if isinstance(grant_store, SqlAlchemyGrantStore):
            await close_database()
        logger.info("Pet access API shutdown complete")

    app = FastAPI(
        title="Pet Access API",
        description="Delegated access grants for shared pet clinical histories",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.grant_service = AccessGrantService(grant_store)
    app.state.pet_owners = pet_owners

    # Middleware (order matters: first added = last executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(health.router)
    app.include_router(grants.router)
    app.include_router(pets.router)

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "name": "Pet Access API",
            "version": __version__,
            "docs": "/docs",
        }

    return app


app = create_app()
