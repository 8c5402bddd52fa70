# foodsaver/api/__init__.py
from fastapi import FastAPI

from foodsaver.api.routers import carts, checkout, foods, orders, stores
from foodsaver.api.routers.health import router as health_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Foodsaver Checkout Service",
        version="1.0.0",
    )

    app.include_router(health_router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)
    app.include_router(foods.router)
    app.include_router(stores.router)

    return app
