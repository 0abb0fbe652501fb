"""
Groundwork - HTTP API

FastAPI application, middleware, routes and the response builder.

Usage:
    from api.app import create_app

    app = create_app(container)
"""
