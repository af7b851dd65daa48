from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from blogapi.config import CORS_ORIGINS
from blogapi.database import Base, db
from blogapi.error_handlers import register_exception_handlers, unexpected_error_response
from blogapi.models import refresh_token_model, user_model
from blogapi.routers import auth, user
from blogapi.utils.logger import bind_request_id

Base.metadata.create_all(bind=db)

app = FastAPI(title="Blog API", description="Users and token-based authentication for a multi-author blog.")

register_exception_handlers(app)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = bind_request_id(request.headers.get("X-Request-ID"))
    try:
        response = await call_next(request)
    except Exception as exc:
        response = await unexpected_error_response(request, exc)
    response.headers["X-Request-ID"] = request_id
    return response


# Added last so it wraps the request id middleware and error responses keep their CORS headers.
# Credentials are needed so browsers send the refresh cookie, and are never combined with a wildcard origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(user.router, prefix="/user", tags=["User"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the API"}
