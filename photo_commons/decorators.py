"""
Lambda handler decorators for photo-service
"""
import time
from functools import wraps
from typing import List, Callable
from .constants import HTTPConstants, ErrorMessages
from .exceptions import PhotoServiceError, ValidationError
from .validation_utils import parse_event, validate_required_fields
from .utils import create_response, create_error_response, create_success_response, create_failure_response
from .logger import logger


def _is_preflight(event) -> bool:
    if not isinstance(event, dict):
        return False
    method = event.get('httpMethod') or event.get('requestContext', {}).get('http', {}).get('method')
    return method == 'OPTIONS'


def api_gateway_handler(log_requests: bool = True):
    """
    Decorator for caller-facing handlers (function URL / API Gateway)

    Answers CORS preflight, decodes the body into event['parsed_body'] and
    turns any uncaught exception into a 500 proxy response.

    Args:
        log_requests: Whether to log request start/end
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(event, context):
            start_time = time.time()
            function_name = getattr(func, '__name__', 'unknown')

            if _is_preflight(event):
                return create_response(HTTPConstants.OK, '')

            if log_requests:
                logger.log_lambda_start(function_name, event, context)

            parsed = parse_event(event)
            if not parsed.ok:
                if log_requests:
                    duration_ms = (time.time() - start_time) * 1000
                    logger.log_lambda_end(function_name, False, duration_ms, error=parsed.detail)

                return create_error_response(
                    HTTPConstants.BAD_REQUEST,
                    ErrorMessages.INVALID_BODY,
                    {'reason': parsed.status.value}
                )

            event['parsed_body'] = parsed.data

            try:
                result = func(event, context)

                if log_requests:
                    duration_ms = (time.time() - start_time) * 1000
                    status_code = result.get('statusCode', HTTPConstants.OK)
                    logger.log_lambda_end(function_name, status_code < HTTPConstants.BAD_REQUEST,
                                          duration_ms, status_code=status_code)

                return result

            except ValidationError as e:
                if log_requests:
                    duration_ms = (time.time() - start_time) * 1000
                    logger.log_lambda_end(function_name, False, duration_ms, error=str(e))

                return create_error_response(HTTPConstants.BAD_REQUEST, e.message)

            except Exception as e:
                # Unexpected errors
                if log_requests:
                    duration_ms = (time.time() - start_time) * 1000
                    logger.log_lambda_end(function_name, False, duration_ms, error=str(e))

                logger.error(f"Unexpected error in {function_name}", error=e)

                return create_error_response(
                    HTTPConstants.INTERNAL_SERVER_ERROR,
                    ErrorMessages.INTERNAL_ERROR
                )

        return wrapper
    return decorator


def direct_lambda_handler(required_fields: List[str] = None, log_requests: bool = True):
    """
    Decorator for worker functions invoked by the orchestrator or the managed engine

    The wrapped function receives the decoded body in event['parsed_body'] and
    returns its data; the reply is always the structured envelope
    {success, data | error, metadata}.

    Args:
        required_fields: Fields that must be present and non-empty in the body
        log_requests: Whether to log request start/end
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(event, context):
            start_time = time.time()
            function_name = getattr(func, '__name__', 'unknown')
            worker_name = getattr(context, 'function_name', None) or function_name

            if log_requests:
                logger.log_lambda_start(function_name, event, context)

            parsed = parse_event(event)
            if not parsed.ok:
                return create_failure_response(
                    'VALIDATION_ERROR',
                    ErrorMessages.INVALID_BODY,
                    {'reason': parsed.status.value},
                    function_name=worker_name
                )

            body = parsed.data
            if required_fields:
                missing_fields = validate_required_fields(body, required_fields)
                if missing_fields:
                    return create_failure_response(
                        'VALIDATION_ERROR',
                        f'Missing required fields: {", ".join(missing_fields)}',
                        {'missing_fields': missing_fields},
                        function_name=worker_name
                    )

            event['parsed_body'] = body

            try:
                data = func(event, context)

                if log_requests:
                    duration_ms = (time.time() - start_time) * 1000
                    logger.log_lambda_end(function_name, True, duration_ms)

                return create_success_response(data, function_name=worker_name)

            except PhotoServiceError as e:
                if log_requests:
                    duration_ms = (time.time() - start_time) * 1000
                    logger.log_lambda_end(function_name, False, duration_ms, error=str(e))

                return create_failure_response(
                    e.error_code or 'PHOTO_SERVICE_ERROR',
                    e.message,
                    e.details,
                    function_name=worker_name
                )

            except Exception as e:
                # Unexpected errors
                if log_requests:
                    duration_ms = (time.time() - start_time) * 1000
                    logger.log_lambda_end(function_name, False, duration_ms, error=str(e))

                logger.error(f"Unexpected error in {function_name}", error=e)

                return create_failure_response(
                    'INTERNAL_ERROR',
                    ErrorMessages.INTERNAL_ERROR,
                    function_name=worker_name
                )

        return wrapper
    return decorator
