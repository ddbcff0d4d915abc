"""
bandset.api
===========

FastAPI application serving the BandSet JSON API under the ``/api``
prefix for the web and mobile clients.

Key features
------------

* Users register and log in with a username and password.  Sessions are
  stored in the ``sessions`` table and identified by the ``session_id``
  cookie, or by an ``Authorization: Bearer`` header for mobile clients.
* Everything else is scoped to a group.  Group routes check the caller's
  membership and role before doing any work.
* Rounds and performance setlists are ordered song lists.  Reordering
  goes through a single reconcile call that adds, moves and removes
  items in one transaction.
* Errors are returned as ``{"error": message}`` with the status code of
  the exception raised by the data layer.

Usage
-----

```
python3 main.py --port 5000
```

The schema is created on startup when missing.  ``DATABASE_URL`` (or the
``DB_*`` variables) selects the database; SQLite is used by default.
"""

import logging
from http import HTTPStatus

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bandset import __version__
from bandset.api import auth, groups, notifications, performances, rounds, songs
from bandset.api.responses import error_response
from bandset.config import LOG_LEVEL, MAX_REQUEST_SIZE
from bandset.db import init_db
from bandset.errors import BandSetError, TransientStoreError

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title='BandSet', version=__version__)

    @app.middleware('http')
    async def limit_request_size(request: Request, call_next):
        length = request.headers.get('content-length')
        if length and length.isdigit() and int(length) > MAX_REQUEST_SIZE:
            logger.warning('%s %s rejected: body of %s bytes', request.method, request.url.path, length)
            return error_response(HTTPStatus.REQUEST_ENTITY_TOO_LARGE, 'Request body too large')
        return await call_next(request)

    @app.exception_handler(BandSetError)
    async def handle_bandset_error(request: Request, exc: BandSetError):
        message = exc.message or HTTPStatus(exc.status_code).phrase
        if exc.status_code >= 500:
            logger.error('%s %s failed: %s', request.method, request.url.path, message)
        else:
            logger.warning('%s %s -> %d: %s', request.method, request.url.path, exc.status_code, message)
        if isinstance(exc, TransientStoreError):
            return error_response(exc.status_code, message, retryable=True)
        return error_response(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning('%s %s -> 400: invalid request', request.method, request.url.path)
        return error_response(
            HTTPStatus.BAD_REQUEST, 'Invalid request', details=jsonable_encoder(exc.errors())
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception('Unhandled error on %s %s', request.method, request.url.path)
        return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, 'Internal server error')

    for module in (auth, groups, songs, rounds, performances, notifications):
        app.include_router(module.router)
    return app


app = create_app()


def run_server(host: str = '0.0.0.0', port: int = 8080):
    init_db()
    logger.info('BandSet server running on http://%s:%s', host, port)
    uvicorn.run(app, host=host, port=port, log_level=LOG_LEVEL.lower())
