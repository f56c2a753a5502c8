from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from starlette_context import context, middleware, plugins

from votechain.config import ORIGINS
from votechain.logger import logger


def register_middlewares(app):
    # Request logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.bind(request_id=context.get("X-Request-ID")).info(
            "{} {}", request.method, request.url.path
        )
        return await call_next(request)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ORIGINS,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_middleware(
        middleware.ContextMiddleware,
        plugins=(
            plugins.RequestIdPlugin(),
            plugins.ForwardedForPlugin(),
        ),
    )
