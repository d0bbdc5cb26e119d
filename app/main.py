import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import OpenAIError

from app.api.routes import router as api_router
from app.config import public_settings, setup_logging
from app.errors import ConfigurationError, InvalidFilterError, UnsupportedRoleError

logger = setup_logging()
app = FastAPI(title="Chat & Vector Search API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("Application starting")
logger.info("Loaded settings: %s", public_settings())


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc, extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(InvalidFilterError)
async def invalid_filter_handler(request: Request, exc: InvalidFilterError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(UnsupportedRoleError)
async def unsupported_role_handler(request: Request, exc: UnsupportedRoleError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(OpenAIError)
async def provider_error_handler(request: Request, exc: OpenAIError):
    logger.error("Provider call failed: %s", exc, extra={"path": request.url.path})
    return JSONResponse(status_code=502, content={"detail": "Upstream provider error"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    from app.config import settings

    uvicorn.run("app.main:app", host=settings.app_host, port=settings.app_port)
