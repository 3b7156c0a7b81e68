"""
Utility functions for the application.
"""
from typing import Any, Dict
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_response(data: Any = None, message: str = "Success") -> Dict[str, Any]:
    """Format API response."""
    response = {"message": message}
    if data is not None:
        response["data"] = data
    return response


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message}
    if details:
        response["details"] = details
    return response
