import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from schoolportal.core.config import settings
from schoolportal.core.errors import PortalError, StoreError
from schoolportal.db.supabase import get_supabase
from schoolportal.modules.admin.router import router as admin_router
from schoolportal.modules.admissions.router import router as admissions_router
from schoolportal.modules.assignments.router import router as assignments_router
from schoolportal.modules.auth.router import router as auth_router
from schoolportal.modules.classes.router import router as classes_router
from schoolportal.modules.meetings.router import router as meetings_router
from schoolportal.modules.posts.router import router as posts_router
from schoolportal.modules.questions.router import router as questions_router
from schoolportal.modules.students.router import router as students_router
from schoolportal.modules.subjects.router import router as subjects_router
from schoolportal.modules.submissions.router import router as submissions_router
from schoolportal.modules.teachers.router import router as teachers_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

TITLE = "School Portal Backend"
DESCRIPTION = "Classes, assignments, submissions and meetings for a school portal"
VERSION = "1.0.0"

# Operations reachable without a session
PUBLIC_OPERATIONS = {
    ("/", "get"),
    ("/health", "get"),
    ("/auth/login", "post"),
    ("/admin/bootstrap", "post"),
    ("/admissions/", "post"),
    ("/admissions/documents", "post"),
    ("/questions/", "post"),
}

app = FastAPI(title=TITLE, description=DESCRIPTION, version=VERSION)


# Custom OpenAPI schema to configure security properly
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=TITLE,
        version=VERSION,
        description=DESCRIPTION,
        routes=app.routes,
    )

    # Add security schemes for Swagger UI
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
        }
    }

    # Add security requirement to every endpoint that needs a session
    for path, path_item in openapi_schema.get("paths", {}).items():
        for method, operation in path_item.items():
            if (path, method) in PUBLIC_OPERATIONS:
                continue
            operation["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------
# ERROR HANDLERS
# -------------------------
@app.exception_handler(PortalError)
def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(PydanticValidationError)
def pydantic_error_handler(request: Request, exc: PydanticValidationError):
    # Models built by hand from form fields
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "detail": exc.errors(include_url=False, include_context=False)},
    )


@app.exception_handler(APIError)
def store_error_handler(request: Request, exc: APIError):
    logger.error("%s %s store error: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=502, content=StoreError("Entity store request failed").to_dict())


# Root route
@app.get("/")
def root():
    return {"message": f"{TITLE} is running"}


# Health check route
@app.get("/health")
def health_check(client: Client = Depends(get_supabase)):
    """Check if the service and database connection are healthy"""
    try:
        client.table("profiles").select("id").limit(1).execute()
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        return {"status": "unhealthy", "database": f"error: {e}"}


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])
app.include_router(teachers_router, prefix="/teachers", tags=["Teachers"])
app.include_router(students_router, prefix="/students", tags=["Students"])
app.include_router(classes_router, prefix="/classes", tags=["Classes"])
app.include_router(subjects_router, prefix="/subjects", tags=["Subjects"])
app.include_router(assignments_router, prefix="/assignments", tags=["Assignments"])
app.include_router(submissions_router, prefix="/submissions", tags=["Submissions"])
app.include_router(meetings_router, prefix="/meetings", tags=["Meetings"])
app.include_router(posts_router, prefix="/posts", tags=["Posts"])
app.include_router(admissions_router, prefix="/admissions", tags=["Admissions"])
app.include_router(questions_router, prefix="/questions", tags=["Questions"])
