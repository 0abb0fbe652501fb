"""
Groundwork - HTTP Routes

Usage:
    from api.routes import register_routes

    register_routes(app)
"""

from fastapi import FastAPI

from api.routes import demo, home


def register_routes(app: FastAPI) -> None:
    app.include_router(home.router)
    app.include_router(demo.router)


__all__ = ["register_routes"]
