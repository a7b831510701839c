"""API routers."""

from quizform.routers.forms import router as forms_router
from quizform.routers.responses import router as responses_router
from quizform.routers.uploads import router as uploads_router

__all__ = ["forms_router", "responses_router", "uploads_router"]
