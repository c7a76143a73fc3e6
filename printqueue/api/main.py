from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from printqueue.api.routes.print_jobs import plain_text
from printqueue.api.routes.print_jobs import router as print_router

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(queue_service) -> FastAPI:
    app = FastAPI(title="printqueue", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.queue_service = queue_service
    app.include_router(print_router)

    # Registered last: anything that is not POST /print ends up here, including
    # other methods on /print.
    @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    def not_found(path: str):
        return plain_text(404, "Not Found")

    # Methods outside ALL_METHODS (TRACE, WebDAV verbs, ...) only partially match
    # POST /print and surface as 405; they get the same answer.
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request, exc):
        if exc.status_code in (404, 405):
            return plain_text(404, "Not Found")
        return plain_text(exc.status_code, str(exc.detail))

    return app
