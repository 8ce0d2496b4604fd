"""Route handlers for the Web API."""

from studyhub.web.routes.exams import router as exams_router
from studyhub.web.routes.health import router as health_router
from studyhub.web.routes.materials import router as materials_router
from studyhub.web.routes.progress import router as progress_router
from studyhub.web.routes.sync import router as sync_router
from studyhub.web.routes.viewer import router as viewer_router

__all__ = [
    "exams_router",
    "health_router",
    "materials_router",
    "progress_router",
    "sync_router",
    "viewer_router",
]
