"""
Alert Controller

FastAPI controller for the monitoring webhook. Each request runs the
capture pipeline to completion and reports the created capture, or a
classified error.
"""

import json
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from alertcapture.models.api_models import CaptureResponse
from alertcapture.services.context_extractor import AlertContextExtractor
from alertcapture.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["alerts"])

# Function-style route kept for webhooks configured against the original trigger URL
legacy_router = APIRouter(prefix="/api", tags=["alerts"])


def _payload_too_large(max_size: int) -> HTTPException:
    return HTTPException(
        status_code=413,
        detail={
            "error": "Payload too large",
            "message": f"Request payload exceeds maximum size of {max_size/1024/1024}MB",
            "max_size_mb": max_size/1024/1024,
        },
    )


async def _read_payload(request: Request) -> Dict[str, Any]:
    """Read and decode the webhook body, enforcing size and shape limits."""
    max_size = request.app.state.settings.max_payload_bytes
    content_length_raw = request.headers.get("content-length")
    try:
        if content_length_raw is not None and int(content_length_raw) > max_size:
            raise _payload_too_large(max_size)
    except ValueError:
        # Ignore invalid Content-Length; we'll enforce after reading the body
        pass

    body = await request.body()
    logger.debug(f"Parsing Alert Request with content of length: {len(body)}")
    if len(body) > max_size:
        raise _payload_too_large(max_size)
    if not body:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Empty request body",
                "message": "Request body is required and cannot be empty",
                "required_fields": AlertContextExtractor.required_fields(),
            }
        )

    try:
        raw_data = json.loads(body)
    except json.JSONDecodeError as e:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Invalid JSON",
                "message": f"Request body contains malformed JSON: {str(e)}",
                "line": getattr(e, 'lineno', None),
                "column": getattr(e, 'colno', None)
            }
        )

    if not isinstance(raw_data, dict):
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Invalid data structure",
                "message": "Request body must be a JSON object",
                "received_type": type(raw_data).__name__
            }
        )
    return raw_data


async def _process_alert(request: Request) -> CaptureResponse:
    try:
        payload = await _read_payload(request)

        orchestrator = request.app.state.capture_orchestrator
        result = await orchestrator.process_alert(payload)

        if not result.success:
            raise HTTPException(
                status_code=result.http_status,
                detail={
                    "error": result.error_type,
                    "message": result.error_message,
                    "category": result.error_category.value if result.error_category else None,
                    "step": result.failed_step.value if result.failed_step else None,
                    "context": result.error_details,
                }
            )

        return CaptureResponse(
            status="created",
            capture_name=result.capture_name,
            watcher_name=result.watcher_name,
            evicted_capture=result.evicted_capture,
            message="Packet capture created",
        )

    except HTTPException:
        # Re-raise HTTP exceptions (these are expected, classified errors)
        raise
    except Exception as e:
        logger.error(f"Unexpected error in submit_alert: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Internal server error",
                "message": "An unexpected error occurred while processing the alert",
            }
        )


@router.post("/alerts", response_model=CaptureResponse)
async def submit_alert(request: Request) -> CaptureResponse:
    """Provision a packet capture for the VM named in a monitoring alert."""
    return await _process_alert(request)


@legacy_router.api_route("/AlertPacketCapture", methods=["GET", "POST"], response_model=CaptureResponse)
async def submit_alert_legacy(request: Request) -> CaptureResponse:
    """Same as POST /api/v1/alerts, on the function-style route. Accepts GET with a JSON body too."""
    return await _process_alert(request)
