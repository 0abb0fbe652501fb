"""
Groundwork - Dependency Injection Module

The composition root: builds config, logger, database and helper services
in order and tears them down as a unit.

Usage:
    from di import Container

    container = await Container.create()
    try:
        container.logger.info("ready")
    finally:
        await container.close()
"""

from di.container import Container

__all__ = ["Container"]
