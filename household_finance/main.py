import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import init_db
from .routers import auth as auth_router
from .routers import budgets as budgets_router
from .routers import categories as categories_router
from .routers import expenses as expenses_router
from .routers import payment_methods as payment_methods_router
from .routers import savings_goals as savings_goals_router
from .routers import users as users_router


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Household Finance – Backend", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def on_startup():
        init_db()

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router.router)
    app.include_router(categories_router.router)
    app.include_router(payment_methods_router.router)
    app.include_router(expenses_router.router)
    app.include_router(budgets_router.router)
    app.include_router(savings_goals_router.router)
    app.include_router(users_router.router)

    return app


app = create_app()
