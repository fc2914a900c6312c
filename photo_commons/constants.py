"""
Photo Service Constants
All constants needed for photo orchestration and worker operations
"""


class HTTPConstants:
    """HTTP status codes and headers"""

    # Status codes
    OK = 200
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500

    # Headers
    CONTENT_TYPE = 'Content-Type'
    ACCESS_CONTROL_ALLOW_ORIGIN = 'Access-Control-Allow-Origin'
    ACCESS_CONTROL_ALLOW_HEADERS = 'Access-Control-Allow-Headers'
    ACCESS_CONTROL_ALLOW_METHODS = 'Access-Control-Allow-Methods'
    ACCESS_CONTROL_MAX_AGE = 'Access-Control-Max-Age'

    ALLOWED_HEADERS = 'Content-Type,Authorization,X-Amz-Date,X-Api-Key'
    ALLOWED_METHODS = 'GET,POST,PUT,DELETE,OPTIONS'

    # MIME types
    JSON = 'application/json'


class StepNames:
    """Names of the workflow steps, used as report keys"""

    INSERT_RECORD = 'insert-record'
    UPLOAD_ORIGINAL = 'upload-original'
    CREATE_THUMBNAIL = 'create-thumbnail'

    DELETE_STORAGE_OBJECTS = 'delete-storage-objects'
    DELETE_RECORD = 'delete-record'
    DELETE_THUMBNAIL = 'delete-thumbnail'


class ExecutionStatus:
    """Step Functions execution statuses"""

    RUNNING = 'RUNNING'
    SUCCEEDED = 'SUCCEEDED'
    FAILED = 'FAILED'
    TIMED_OUT = 'TIMED_OUT'
    ABORTED = 'ABORTED'
    UNKNOWN = 'UNKNOWN'

    TERMINAL = frozenset([SUCCEEDED, FAILED, TIMED_OUT, ABORTED])


class ImageConstants:
    """Image processing constants"""

    # Thumbnails fit in a square of this size
    THUMBNAIL_MAX_DIMENSION = 100
    RESIZED_KEY_PREFIX = 'resized-'

    JPG = 'jpg'
    JPEG = 'jpeg'
    PNG = 'png'

    # Extension -> (Pillow format, MIME type)
    SUPPORTED_TYPES = {
        JPG: ('JPEG', 'image/jpeg'),
        JPEG: ('JPEG', 'image/jpeg'),
        PNG: ('PNG', 'image/png'),
    }

    THUMBNAIL_QUALITY = 85


class ErrorMessages:
    """Caller-facing error messages"""

    MISSING_KEY = "Missing 'key' field in request body"
    MISSING_CONTENT = "Missing 'content' field in request body"
    INVALID_BODY = 'Invalid JSON in request body'
    ACCESS_DENIED = 'Access denied'
    INTERNAL_ERROR = 'Internal server error occurred'
