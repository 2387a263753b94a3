import logging
from typing import Dict

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from auth.context import NotAuthenticatedError
from auth.routes import router as auth_router
from budgets.budget_repo import BudgetNotFoundError
from budgets.budget_routes import router as budget_router
from categories.category_repo import CategoryRepo
from categories.category_routes import router as category_router
from db.session import close_db, get_session_factory, init_db
from expenses.expense_routes import router as expense_router
from receipts.relay_routes import router as relay_router
from receipts.relay_service import RelayValidationError, shutdown_extraction_pool
from settings.config import settings
from settings.logging_config import configure_logging

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RelayValidationError)
    async def relay_validation_error(request: Request, exc: RelayValidationError) -> JSONResponse:
        logger.info(f"Rejected upload: {exc.error}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.error, "details": exc.details})

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(request: Request, exc: NotAuthenticatedError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Not authenticated", "details": str(exc)},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(BudgetNotFoundError)
    async def budget_not_found(request: Request, exc: BudgetNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Budget not found", "details": str(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to save data", "details": str(exc)},
        )


def get_app() -> FastAPI:
    configure_logging()
    logger.info("Starting Expense Tracker API")
    app = FastAPI(title="Expense Tracker API")

    # CORS: the mobile client talks to the API directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # DB lifecycle
    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("Initializing database")
        await init_db()
        if settings.SEED_CATEGORIES:
            async with get_session_factory()() as session:
                await CategoryRepo(session).seed_defaults()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Closing database")
        await close_db()
        shutdown_extraction_pool()

    register_exception_handlers(app)

    # Routers
    app.include_router(relay_router)
    app.include_router(auth_router)
    app.include_router(category_router)
    app.include_router(budget_router)
    app.include_router(expense_router)
    logger.info("Routers initialized successfully")

    # Health
    @app.get("/health")
    async def health_check() -> Dict[str, str]:
        return {"status": "ok"}

    logger.info("API started")
    return app


# ASGI app instance
app = get_app()
