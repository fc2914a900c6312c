"""
Photo Service Exceptions
Custom exception classes for orchestration and worker operations
"""


class PhotoServiceError(Exception):
    """Base exception for all photo service errors"""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses"""
        result = {
            'error': self.__class__.__name__,
            'message': self.message
        }
        if self.error_code:
            result['error_code'] = self.error_code
        if self.details:
            result['details'] = self.details
        return result


class ValidationError(PhotoServiceError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str = None):
        self.field = field

        details = {}
        if field:
            details['field'] = field

        super().__init__(message, 'VALIDATION_ERROR', details)


class AuthenticationError(PhotoServiceError):
    """Raised when a credential is missing or does not match the claimed identity"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, 'AUTHENTICATION_ERROR')


class OwnershipConflictError(PhotoServiceError):
    """Raised when a write targets a key whose record belongs to another identity"""

    def __init__(self, message: str = "Key is owned by another user", key: str = None):
        self.key = key

        details = {}
        if key:
            details['key'] = key

        super().__init__(message, 'OWNERSHIP_CONFLICT', details)


class ManagedExecutionError(PhotoServiceError):
    """Raised when the managed workflow engine cannot complete an execution"""

    def __init__(self, message: str, execution_arn: str = None, status: str = None):
        self.execution_arn = execution_arn
        self.status = status

        details = {}
        if execution_arn:
            details['execution_arn'] = execution_arn
        if status:
            details['status'] = status

        super().__init__(message, 'MANAGED_EXECUTION_ERROR', details)


class WorkflowDefinitionError(PhotoServiceError):
    """Raised when a step graph has duplicate, unknown or cyclic dependencies"""

    def __init__(self, message: str, step: str = None):
        self.step = step

        details = {}
        if step:
            details['step'] = step

        super().__init__(message, 'WORKFLOW_DEFINITION_ERROR', details)


class ConfigurationError(PhotoServiceError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None):
        self.config_key = config_key

        details = {}
        if config_key:
            details['config_key'] = config_key

        super().__init__(message, 'CONFIGURATION_ERROR', details)


class S3OperationError(PhotoServiceError):
    """Raised when S3 operations fail"""

    def __init__(self, message: str, operation: str = None, bucket: str = None, key: str = None):
        self.operation = operation
        self.bucket = bucket
        self.key = key

        details = {}
        if operation:
            details['operation'] = operation
        if bucket:
            details['bucket'] = bucket
        if key:
            details['key'] = key

        super().__init__(message, 'S3_OPERATION_ERROR', details)


class DynamoDBError(PhotoServiceError):
    """Raised when DynamoDB operations fail"""

    def __init__(self, message: str, operation: str = None, table: str = None, original_error: str = None):
        self.operation = operation
        self.table = table
        self.original_error = original_error

        details = {}
        if operation:
            details['operation'] = operation
        if table:
            details['table'] = table
        if original_error:
            details['original_error'] = original_error

        super().__init__(message, 'DYNAMODB_ERROR', details)
