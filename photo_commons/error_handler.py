"""
AWS error handling utilities for photo-service
"""
from typing import Dict, Any
from botocore.exceptions import ClientError, BotoCoreError
from pynamodb.exceptions import PynamoDBException, DeleteError, PutError, QueryError
from .constants import HTTPConstants
from .logger import logger


THROTTLING_CODES = ('ThrottlingException', 'TooManyRequestsException', 'ProvisionedThroughputExceededException',
                    'SlowDown', 'RequestLimitExceeded')


def _client_error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', 'Unknown')


class AWSErrorHandler:
    """
    Centralized AWS error classification for photo-service

    Every handle_* method logs the failure and returns a dict with
    success, error_type, error_message, status_code and retryable.
    """

    @staticmethod
    def handle_lambda_error(error: Exception, function_name: str = None) -> Dict[str, Any]:
        """
        Handle errors raised by lambda:Invoke

        Args:
            error: The exception that occurred
            function_name: Worker function being invoked

        Returns:
            Standardized error response
        """
        error_context = {
            'function_name': function_name or 'unknown',
            'error_type': type(error).__name__,
            'error_message': str(error)
        }

        if isinstance(error, ClientError):
            error_code = _client_error_code(error)
            error_context['aws_error_code'] = error_code

            logger.error("Lambda invoke ClientError", **error_context)

            if error_code in THROTTLING_CODES:
                return {
                    'success': False,
                    'error_type': 'ThrottlingError',
                    'error_message': f'Worker {function_name} is throttled',
                    'status_code': HTTPConstants.TOO_MANY_REQUESTS,
                    'retryable': True
                }
            elif error_code == 'ResourceNotFoundException':
                return {
                    'success': False,
                    'error_type': 'WorkerNotFound',
                    'error_message': f'Worker {function_name} does not exist',
                    'status_code': HTTPConstants.NOT_FOUND,
                    'retryable': False
                }
            else:
                return {
                    'success': False,
                    'error_type': 'AWSError',
                    'error_message': f'Worker {function_name} invocation failed: {error_code}',
                    'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                    'retryable': True
                }

        elif isinstance(error, BotoCoreError):
            logger.error("Lambda invoke transport error", **error_context)
            return {
                'success': False,
                'error_type': 'TransportError',
                'error_message': f'Worker {function_name} unreachable: {error}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        else:
            logger.error("Unexpected worker invocation error", **error_context)
            return {
                'success': False,
                'error_type': 'InvocationError',
                'error_message': f'Worker {function_name} invocation failed: {error}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': False
            }

    @staticmethod
    def handle_stepfunctions_error(error: Exception, operation: str, execution_arn: str = None) -> Dict[str, Any]:
        """
        Handle Step Functions errors (start_execution, describe_execution)

        Args:
            error: The exception that occurred
            operation: The operation being performed
            execution_arn: Optional execution ARN for context

        Returns:
            Standardized error response
        """
        error_context = {
            'operation': operation,
            'execution_arn': execution_arn or 'unknown',
            'error_type': type(error).__name__,
            'error_message': str(error)
        }

        if isinstance(error, ClientError):
            error_code = _client_error_code(error)
            error_context['aws_error_code'] = error_code

            logger.warning("Step Functions ClientError", **error_context)

            if error_code in ('StateMachineDoesNotExist', 'ExecutionDoesNotExist', 'InvalidArn'):
                return {
                    'success': False,
                    'error_type': 'ResourceNotFound',
                    'error_message': f'Workflow resource not found: {error_code}',
                    'status_code': HTTPConstants.NOT_FOUND,
                    'retryable': False
                }
            elif error_code in THROTTLING_CODES:
                return {
                    'success': False,
                    'error_type': 'ThrottlingError',
                    'error_message': 'Workflow engine is throttling requests',
                    'status_code': HTTPConstants.TOO_MANY_REQUESTS,
                    'retryable': True
                }
            else:
                return {
                    'success': False,
                    'error_type': 'AWSError',
                    'error_message': f'Workflow engine error: {error_code}',
                    'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                    'retryable': True
                }

        logger.warning("Unexpected Step Functions error", **error_context)
        return {
            'success': False,
            'error_type': 'WorkflowEngineError',
            'error_message': f'Workflow engine {operation} failed: {error}',
            'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
            'retryable': False
        }

    @staticmethod
    def handle_ssm_error(error: Exception, parameter_name: str = None) -> Dict[str, Any]:
        """
        Handle SSM Parameter Store errors

        Args:
            error: The exception that occurred
            parameter_name: Optional parameter name for context

        Returns:
            Standardized error response
        """
        error_context = {
            'parameter_name': parameter_name or 'unknown',
            'error_type': type(error).__name__,
            'error_message': str(error)
        }

        if isinstance(error, ClientError):
            error_code = _client_error_code(error)
            error_context['aws_error_code'] = error_code

            logger.warning("SSM Parameter error", **error_context)

            if error_code == 'ParameterNotFound':
                return {
                    'success': False,
                    'error_type': 'ParameterNotFound',
                    'error_message': f'Configuration parameter not found: {parameter_name}',
                    'status_code': HTTPConstants.NOT_FOUND,
                    'retryable': False
                }
            return {
                'success': False,
                'error_type': 'ConfigurationError',
                'error_message': f'Configuration error: {error_code}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        logger.warning("Unexpected SSM error", **error_context)
        return {
            'success': False,
            'error_type': 'ConfigurationError',
            'error_message': 'Configuration service error',
            'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
            'retryable': False
        }

    @staticmethod
    def handle_dynamodb_error(error: Exception, operation: str, table_name: str = None) -> Dict[str, Any]:
        """
        Handle DynamoDB-related errors

        Args:
            error: The exception that occurred
            operation: The operation being performed
            table_name: Optional table name for context

        Returns:
            Standardized error response
        """
        error_context = {
            'operation': operation,
            'table_name': table_name or 'unknown',
            'error_type': type(error).__name__,
            'error_message': str(error)
        }

        if isinstance(error, (QueryError, DeleteError, PutError)):
            logger.error(f"DynamoDB operation failed: {operation}", **error_context)
            return {
                'success': False,
                'error_type': 'DatabaseError',
                'error_message': f'Database operation failed: {operation}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        elif isinstance(error, PynamoDBException):
            logger.error("PynamoDB error occurred", **error_context)
            return {
                'success': False,
                'error_type': 'DatabaseError',
                'error_message': 'Database operation failed',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        logger.error("Unexpected database error", **error_context)
        return {
            'success': False,
            'error_type': 'DatabaseError',
            'error_message': 'Unexpected database error occurred',
            'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
            'retryable': False
        }

    @staticmethod
    def handle_s3_error(error: Exception, operation: str, bucket_name: str = None, key: str = None) -> Dict[str, Any]:
        """
        Handle S3-related errors

        Args:
            error: The exception that occurred
            operation: The operation being performed
            bucket_name: Optional bucket name for context
            key: Optional S3 key for context

        Returns:
            Standardized error response
        """
        error_context = {
            'operation': operation,
            'bucket_name': bucket_name or 'unknown',
            's3_key': key or 'unknown',
            'error_type': type(error).__name__,
            'error_message': str(error)
        }

        if isinstance(error, ClientError):
            error_code = _client_error_code(error)
            error_context['aws_error_code'] = error_code

            logger.error("S3 ClientError", **error_context)

            if error_code == 'NoSuchBucket':
                return {
                    'success': False,
                    'error_type': 'BucketNotFound',
                    'error_message': 'Storage bucket not found',
                    'status_code': HTTPConstants.NOT_FOUND,
                    'retryable': False
                }
            elif error_code == 'AccessDenied':
                return {
                    'success': False,
                    'error_type': 'AccessDenied',
                    'error_message': 'Access denied to storage resource',
                    'status_code': HTTPConstants.FORBIDDEN,
                    'retryable': False
                }
            elif error_code in THROTTLING_CODES:
                return {
                    'success': False,
                    'error_type': 'ThrottlingError',
                    'error_message': 'Storage service is busy. Please try again.',
                    'status_code': HTTPConstants.TOO_MANY_REQUESTS,
                    'retryable': True
                }
            return {
                'success': False,
                'error_type': 'StorageError',
                'error_message': f'Storage error: {error_code}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        logger.error("Unexpected S3 error", **error_context)
        return {
            'success': False,
            'error_type': 'StorageError',
            'error_message': 'Unexpected storage error occurred',
            'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
            'retryable': False
        }


# Global error handler instance
error_handler = AWSErrorHandler()
