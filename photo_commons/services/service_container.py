"""
Service container for dependency injection
"""
from typing import Dict, Any
import boto3
from ..config import config


class ServiceContainer:
    """
    Simple service container for dependency injection
    Provides lazy loading of services and their AWS clients, built once per
    Lambda container and shared by every invocation
    """

    def __init__(self):
        self._services: Dict[str, Any] = {}

    def get_service(self, service_name: str):
        """
        Get service instance with lazy initialization

        Args:
            service_name: Name of the service to retrieve

        Returns:
            Service instance

        Raises:
            ValueError: If service is not registered
        """
        if service_name not in self._services:
            self._services[service_name] = self._create_service(service_name)

        return self._services[service_name]

    def _create_service(self, service_name: str):
        """
        Create service instance

        Args:
            service_name: Name of service to create

        Returns:
            Service instance

        Raises:
            ValueError: If service is unknown
        """
        if service_name in ('s3_client', 'lambda_client', 'sfn_client', 'ssm_client'):
            aws_service = {
                's3_client': 's3',
                'lambda_client': 'lambda',
                'sfn_client': 'stepfunctions',
                'ssm_client': 'ssm',
            }[service_name]
            return boto3.client(aws_service, region_name=config.aws_region)

        elif service_name == 'token_authenticator':
            from ..auth.token import TokenAuthenticator
            return TokenAuthenticator(ssm_client=self.get_service('ssm_client'))

        elif service_name == 'ownership_verifier':
            from ..auth.ownership import OwnershipVerifier
            return OwnershipVerifier()

        elif service_name == 'worker_invoker':
            from .worker_invoker import WorkerInvoker
            return WorkerInvoker(self.get_service('lambda_client'))

        elif service_name == 'execution_poller':
            from .execution_poller import ExecutionPoller
            return ExecutionPoller(self.get_service('sfn_client'))

        elif service_name == 'workflow_orchestrator':
            from .orchestrator import WorkflowOrchestrator
            return WorkflowOrchestrator(
                authenticator=self.get_service('token_authenticator'),
                ownership_verifier=self.get_service('ownership_verifier'),
                invoker=self.get_service('worker_invoker'),
                poller=self.get_service('execution_poller')
            )

        elif service_name == 'photo_service':
            from .photo_service import PhotoService
            return PhotoService(self.get_service('s3_client'))

        else:
            raise ValueError(f"Unknown service: {service_name}")

    def register_service(self, service_name: str, service_instance):
        """
        Register a service instance

        Args:
            service_name: Name of the service
            service_instance: Service instance to register
        """
        self._services[service_name] = service_instance

    def clear_services(self):
        """Clear all cached services (useful for testing)"""
        self._services.clear()


# Global service container instance
_service_container = ServiceContainer()


def get_service(service_name: str):
    """
    Get service from global container

    Args:
        service_name: Name of service to retrieve

    Returns:
        Service instance
    """
    return _service_container.get_service(service_name)


def register_service(service_name: str, service_instance):
    """
    Register service in global container

    Args:
        service_name: Name of the service
        service_instance: Service instance to register
    """
    _service_container.register_service(service_name, service_instance)


def clear_services():
    """Clear all services (useful for testing)"""
    _service_container.clear_services()
