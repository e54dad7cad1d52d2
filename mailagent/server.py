"""HTTP server exposing the MailAgent engine."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mailagent import __version__
from mailagent.agent import run_instruction
from mailagent.mailchimp import MailchimpClient, MailchimpSettings, load_settings
from mailagent.schemas import (
    AgentRequest,
    AgentResponse,
    ConfigurationStatus,
    ErrorResponse,
    HealthResponse,
)

logger = logging.getLogger(__name__)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="MailAgent",
    description="Turns free-text directives into Mailchimp operations",
    version=__version__,
)


# --- Dependencies ---


@lru_cache(maxsize=1)
def get_settings() -> MailchimpSettings:
    """Mailchimp credentials, resolved once per process."""
    return load_settings()


def get_client(settings: MailchimpSettings = Depends(get_settings)) -> MailchimpClient:
    return MailchimpClient(settings)


# --- HTTP Endpoints ---


@app.get("/agent", response_model=ConfigurationStatus)
def configuration(settings: MailchimpSettings = Depends(get_settings)) -> ConfigurationStatus:
    """Report whether Mailchimp credentials are present."""
    return ConfigurationStatus(configured=settings.configured)


@app.post("/agent", response_model=AgentResponse)
def run_agent(
    request: AgentRequest,
    settings: MailchimpSettings = Depends(get_settings),
    client: MailchimpClient = Depends(get_client),
) -> AgentResponse:
    """Interpret an instruction and execute it.

    Args:
        request: AgentRequest with instruction and optional defaults

    Returns:
        AgentResponse with summary, traces and results
    """
    logger.info(f"Received instruction ({len(request.instruction)} chars)")
    response = run_instruction(request.instruction, request.config, client=client, settings=settings)
    logger.info(f"Completed instruction: {response.summary}")
    return response


@app.get("/health", response_model=HealthResponse)
def health(
    settings: MailchimpSettings = Depends(get_settings),
    client: MailchimpClient = Depends(get_client),
) -> HealthResponse:
    """Check server and Mailchimp health."""
    if not settings.configured:
        return HealthResponse(broker="healthy", mailchimp="unconfigured")

    return HealthResponse(
        broker="healthy",
        mailchimp="healthy" if client.ping() else "unhealthy",
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed payloads before they reach the engine."""
    issues = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            detail="Invalid input provided.",
            error_code="INVALID_INPUT",
            issues=issues,
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            detail=str(exc),
            error_code="INTERNAL_ERROR",
        ).model_dump(),
    )
