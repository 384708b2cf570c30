import json

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from src.utils.logging import setup_logging, logger
from src.utils.errors import APIError, ValidationError
from src.models import (
    CreateWebCallRequest,
    CreateWebCallResponse,
    ProvisionResponse,
    ReceiveLeadResponse,
)
from src.functions import provision_agent, create_web_call, receive_lead
from src.webhooks import router as webhook_router
from src.config import settings

# Setup logging
setup_logging()

app = FastAPI(
    title="AI Receptionist Provisioning API",
    description="Provisions Retell voice agents and routes post-call notifications",
    version="1.0.0"
)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


# Global exception handler
@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    if exc.status_code >= 500:
        logger.error(f"❌ {exc.message} {exc.details}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [{key: value for key, value in err.items() if key not in ("ctx", "url")} for err in exc.errors()]
    error = ValidationError("Invalid request body", details={"errors": jsonable_encoder(errors)})
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": str(exc) if settings.environment == "development" else "Internal server error"
        }
    )

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Include webhook routes
app.include_router(webhook_router, prefix="/webhooks", tags=["webhooks"])


@app.get("/")
async def root():
    return {
        "status": "ok",
        "service": "AI Receptionist Provisioning API",
        "version": "1.0.0"
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


async def _json_body(request: Request) -> dict:
    """Parse the body leniently; intake platforms sometimes post nothing or non-objects."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("⚠️  Request body is not valid JSON, treating as empty")
        return {}
    return body if isinstance(body, dict) else {}


# Provisioning endpoints
@app.post("/functions/provision", response_model=ProvisionResponse)
async def provision_endpoint(request: Request):
    """Create the LLM, agent and (outside dry run) phone number for an intake submission"""
    body = await _json_body(request)
    return await provision_agent(body)


@app.options("/functions/provision")
async def provision_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@app.api_route("/functions/provision", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def provision_method_not_allowed():
    return JSONResponse(
        status_code=405,
        content={"ok": False, "error": "Method not allowed"},
        headers={"Allow": "POST, OPTIONS"}
    )


@app.post("/functions/create-web-call", response_model=CreateWebCallResponse)
async def create_web_call_endpoint(request: CreateWebCallRequest):
    """Create a browser call against a provisioned (or the demo) agent"""
    return await create_web_call(request)


@app.post("/functions/receive-lead", response_model=ReceiveLeadResponse)
async def receive_lead_endpoint(request: Request):
    """Acknowledge a lead pushed by the automation platform"""
    body = await _json_body(request)
    return await receive_lead(body)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development"
    )
