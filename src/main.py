"""Workforce Operations Console: API entry point."""

import logging
import sys

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.access_control import router as access_control_router
from src.api.auth import router as auth_router
from src.api.errors import register_error_handlers
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.projects import router as projects_router
from src.api.templates import router as templates_router
from src.api.university import router as university_router
from src.api.users import router as users_router
from src.config import APP_VERSION, get_settings
from src.logging.structured_logger import setup_logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Workforce Operations Console",
    description="Permissions, project templates, task tracking and training for multi-site teams",
    version=APP_VERSION,
)
app.include_router(auth_router)
app.include_router(access_control_router)
app.include_router(templates_router)
app.include_router(projects_router)
app.include_router(university_router)
app.include_router(users_router)
register_error_handlers(app)
# Middleware order (last added = outermost = runs first): RequestContext → CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().api.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)
app.add_middleware(RequestContextMiddleware)


@app.get("/health")
async def health_check() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": APP_VERSION}


def main() -> None:
    """Validate configuration, then serve the API."""
    settings = get_settings()

    validation = settings.validate_required()
    if not validation.ok:
        for err in validation.errors:
            hint = f" Hint: {err.hint}" if err.hint else ""
            print(f"❌ {err.field}: {err.message}.{hint}")
        print(f"\n{len(validation.errors)} configuration error(s). Fix them and restart.")
        sys.exit(1)

    setup_logging(level=settings.logging.level, format_type=settings.logging.format)
    logger.info("Starting Workforce Operations Console v%s", APP_VERSION)

    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
