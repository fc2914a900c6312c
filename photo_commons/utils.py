"""
Lambda response utilities for photo-service
"""
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from .constants import HTTPConstants
from .config import config


def cors_headers() -> Dict[str, str]:
    """CORS headers attached to every caller-facing response"""
    return {
        HTTPConstants.ACCESS_CONTROL_ALLOW_ORIGIN: config.cors_allowed_origin,
        HTTPConstants.ACCESS_CONTROL_ALLOW_HEADERS: HTTPConstants.ALLOWED_HEADERS,
        HTTPConstants.ACCESS_CONTROL_ALLOW_METHODS: HTTPConstants.ALLOWED_METHODS,
        HTTPConstants.ACCESS_CONTROL_MAX_AGE: '3600'
    }


def create_response(status_code: int, body: str, headers: Optional[dict] = None) -> Dict[str, Any]:
    """
    Create standardized Lambda proxy response

    Args:
        status_code: HTTP status code
        body: Response body (JSON string)
        headers: Additional headers

    Returns:
        Lambda proxy integration response
    """
    default_headers = {HTTPConstants.CONTENT_TYPE: HTTPConstants.JSON}
    default_headers.update(cors_headers())

    if headers:
        default_headers.update(headers)

    return {
        'statusCode': status_code,
        'headers': default_headers,
        'body': body,
        'isBase64Encoded': False
    }


def create_error_response(status_code: int, message: str, details: Optional[dict] = None) -> Dict[str, Any]:
    """
    Create standardized error response

    Args:
        status_code: HTTP status code
        message: Error message
        details: Additional error details

    Returns:
        Lambda proxy integration error response
    """
    error_body = {
        'success': False,
        'error': message,
        'timestamp': datetime.now(timezone.utc).isoformat()
    }

    if details:
        error_body.update(details)

    return create_response(status_code, json.dumps(error_body))


def create_success_response(data: Any, metadata: Optional[Dict[str, Any]] = None, function_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Create protocol-agnostic success response for internal Lambda communication

    Args:
        data: The actual response data
        metadata: Optional metadata dict
        function_name: Name of the function generating the response

    Returns:
        Protocol-agnostic success response
    """
    response = {
        "success": True,
        "data": data
    }

    response_metadata = {
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    if function_name:
        response_metadata["function_name"] = function_name

    if metadata:
        response_metadata.update(metadata)

    response["metadata"] = response_metadata

    return response


def create_failure_response(error_code: str, message: str, details: Optional[Dict[str, Any]] = None, function_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Create protocol-agnostic failure response for internal Lambda communication

    Args:
        error_code: Error code (e.g., 'VALIDATION_ERROR', 'S3_OPERATION_ERROR', 'INTERNAL_ERROR')
        message: Human-readable error message
        details: Optional error details dict
        function_name: Name of the function generating the response

    Returns:
        Protocol-agnostic failure response
    """
    response = {
        "success": False,
        "error": {
            "code": error_code,
            "message": message
        }
    }

    if details:
        response["error"]["details"] = details

    response["metadata"] = {
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    if function_name:
        response["metadata"]["function_name"] = function_name

    return response
