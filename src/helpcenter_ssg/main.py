"""
Preview Server Application

FastAPI application that serves a finished build the way the production
host should: canonical trailing-slash redirects, prerendered pages, then the
client shell as fallback.

Design Goals
------------
- Test-friendly via create_app()
- One canonicalizer per app, built from the same configuration as the build
- Global exception safety net
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI

from . import __version__
from .api import health_routes, site_routes
from .config import BuildConfiguration, get_settings
from .core.errors import unhandled_exception_handler
from .routing.canonical import SlugIndex, URLCanonicalizer

logger = logging.getLogger("ssg.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app(
    config: Optional[BuildConfiguration] = None,
    dist_dir: Optional[Union[str, Path]] = None,
) -> FastAPI:
    """
    Create the preview application.

    Parameters
    ----------
    config : Optional[BuildConfiguration]
        Defaults to the configuration derived from the environment.

    dist_dir : Optional[str | Path]
        Build output to serve. Defaults to ``Settings.dist_dir``.

    Returns
    -------
    FastAPI
        Configured application.
    """
    settings = get_settings()
    config = config or BuildConfiguration.from_settings(settings)

    app = FastAPI(
        title="helpcenter-ssg preview",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.dist_dir = Path(dist_dir or settings.dist_dir)
    # Legacy /categoria/ and /artigo/ addresses resolve against the build
    app.state.canonicalizer = URLCanonicalizer.from_config(
        config,
        slugs=SlugIndex.from_dist(app.state.dist_dir),
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    # The site router holds the catch-all route and must come last
    app.include_router(health_routes.router)
    app.include_router(site_routes.router)

    logger.info("Serving %s at %s", app.state.dist_dir, config.base_path)
    return app
