"""Translate domain failures into HTTP errors"""

import logging

from fastapi import HTTPException

from credit_engine.domain.exceptions import MalformedApplicationError


def malformed_application(e: MalformedApplicationError, request_id: str) -> HTTPException:
    logging.warning(f"Malformed application: {e}", extra={"request_id": request_id})
    return HTTPException(status_code=422, detail=str(e))


def internal_error(e: Exception, request_id: str) -> HTTPException:
    logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
    return HTTPException(status_code=500, detail="Internal server error")
