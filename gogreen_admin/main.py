import os
from datetime import datetime, UTC

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .audit import audit_router
from .categories import category_router, subcategory_router
from .config import get_settings
from .contact import contact_router
from .database import init_db
from .exceptions import AppBaseException
from .home_popups import home_popup_router
from .logging_config import app_logger, configure_logging, error_log
from .middleware import RequestLoggingMiddleware
from .pending_changes import pending_change_router
from .posts import post_router
from .products import product_router
from .specifications import specification_router
from .youtube import youtube_router

configure_logging()

app = FastAPI(title="GoGreen Admin API")

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(product_router, prefix="/api/products", tags=["Products"])
app.include_router(category_router, prefix="/api/categories", tags=["Categories"])
app.include_router(subcategory_router, prefix="/api/subcategories", tags=["Subcategories"])
app.include_router(specification_router, prefix="/api/specifications", tags=["Specifications"])
app.include_router(post_router, prefix="/api/posts", tags=["Posts"])
app.include_router(contact_router, prefix="/api/contact", tags=["Contact"])
app.include_router(home_popup_router, prefix="/api/home-popups", tags=["Home Popups"])
app.include_router(youtube_router, prefix="/api/youtube-videos", tags=["YouTube Videos"])
app.include_router(audit_router, prefix="/api/audit", tags=["Audit"])
app.include_router(pending_change_router, prefix="/api/pending-changes", tags=["Pending Changes"])

@app.on_event("startup")
async def startup_event():
    init_db()
    app_logger.info("Application started", environment=settings.ENVIRONMENT)

@app.exception_handler(AppBaseException)
async def app_exception_handler(request: Request, exc: AppBaseException):
    app_logger.warning(
        "Application error",
        error_type=exc.__class__.__name__,
        detail=exc.detail,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return await http_exception_handler(request, exc)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    error_log(exc, {"method": request.method, "path": request.url.path})
    message = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"success": False, "error": message})

@app.get("/")
async def root():
    return {"message": "GoGreen Admin API"}

@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }

@app.get("/healthz")
def healthz():
    return {"status": "ok"}

if __name__ == "__main__":
    port = int(os.environ.get("BACKEND_PORT", 8000))
    uvicorn.run("gogreen_admin.main:app", host="0.0.0.0", port=port, reload=False)
