"""
Configuration management for photo-service
Supports environment variables, SSM Parameter Store, and local .env files
"""
import os
from typing import Optional, Any
import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError, BotoCoreError
from dotenv import load_dotenv


class Config:
    """
    Configuration manager with hybrid approach:
    1. Environment Variables (highest priority)
    2. AWS Parameter Store (environment-specific)
    3. Local defaults (development fallback)
    """

    def __init__(self, env_dir: Optional[str] = None):
        self.environment = os.environ.get('ENVIRONMENT', 'dev')
        self.parameter_store_prefix = os.environ.get(
            'PARAMETER_STORE_PREFIX',
            f'/photo-service/{self.environment}'
        )
        self.use_parameter_store = os.environ.get('USE_PARAMETER_STORE', 'true').lower() in ('true', '1', 'yes', 'on')
        self._ssm_client = None
        self._parameter_cache = {}

        self._load_env_defaults(env_dir or os.path.dirname(__file__))

    def _load_env_defaults(self, env_dir: str):
        """Load local .env files without overriding the process environment"""
        for filename in ('.env.defaults', f'.env.{self.environment}'):
            env_file = os.path.join(env_dir, filename)
            if os.path.exists(env_file):
                load_dotenv(env_file, override=False)

    @property
    def ssm_client(self):
        """Lazy initialization of SSM client"""
        if self._ssm_client is None and self.use_parameter_store:
            try:
                self._ssm_client = boto3.client(
                    'ssm',
                    region_name=self.aws_region,
                    config=BotoConfig(connect_timeout=2, read_timeout=2, retries={'max_attempts': 1})
                )
            except (BotoCoreError, ValueError):
                # For local development or testing without AWS credentials
                self._ssm_client = None
        return self._ssm_client

    @property
    def aws_region(self) -> str:
        """AWS region for every client; never looked up in Parameter Store"""
        return (
            os.environ.get('PHOTO_SERVICE_AWS_REGION')
            or os.environ.get('AWS_REGION')
            or os.environ.get('AWS_DEFAULT_REGION')
            or 'ap-southeast-2'
        )

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """
        Get configuration parameter with fallback hierarchy:
        1. Environment variable
        2. SSM Parameter Store
        3. Default value
        """
        # Try environment variable first (with photo service prefix)
        env_key = f"PHOTO_SERVICE_{key.upper().replace('-', '_')}"
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return env_value

        # Try standard environment variable
        env_value = os.environ.get(key.upper().replace('-', '_'))
        if env_value is not None:
            return env_value

        # Try SSM Parameter Store
        ssm_value = self.get_ssm_parameter(key)
        if ssm_value is not None:
            return ssm_value

        return default

    def get_ssm_parameter(self, key: str) -> Optional[str]:
        """
        Get parameter from AWS SSM Parameter Store with caching
        """
        if key in self._parameter_cache:
            return self._parameter_cache[key]

        if not self.ssm_client:
            return None

        parameter_name = f"{self.parameter_store_prefix}/{key}"

        try:
            response = self.ssm_client.get_parameter(Name=parameter_name)
            value = response['Parameter']['Value']
            self._parameter_cache[key] = value
            return value
        except ClientError as e:
            if e.response['Error']['Code'] != 'ParameterNotFound':
                print(f"Error getting SSM parameter {parameter_name}: {e}")
            self._parameter_cache[key] = None
            return None
        except BotoCoreError as e:
            print(f"Unexpected error getting SSM parameter {parameter_name}: {e}")
            self._parameter_cache[key] = None
            return None

    def get_int_parameter(self, key: str, default: int = 0) -> int:
        """Get integer parameter"""
        value = self.get_parameter(key, default)
        try:
            return int(value)
        except (ValueError, TypeError):
            return default

    def get_float_parameter(self, key: str, default: float = 0.0) -> float:
        """Get float parameter"""
        value = self.get_parameter(key, default)
        try:
            return float(value)
        except (ValueError, TypeError):
            return default

    def get_bool_parameter(self, key: str, default: bool = False) -> bool:
        """Get boolean parameter"""
        value = self.get_parameter(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ('true', '1', 'yes', 'on')
        return default

    # Storage
    @property
    def photo_table_name(self) -> str:
        """Get photo record table name"""
        return self.get_parameter('photo-table-name', f'Photos-{self.environment}')

    @property
    def source_bucket_name(self) -> str:
        """Bucket holding original uploads"""
        return self.get_parameter('bucket-name', f'photo-service-originals-{self.environment}')

    @property
    def resized_bucket_name(self) -> str:
        """Bucket holding generated thumbnails"""
        return self.get_parameter('resized-bucket-name', f'photo-service-resized-{self.environment}')

    # Worker functions
    @property
    def add_photo_record_function(self) -> str:
        return self.get_parameter('add-photo-record-function', f'photo-record-add-{self.environment}')

    @property
    def upload_original_function(self) -> str:
        return self.get_parameter('upload-original-function', f'photo-original-upload-{self.environment}')

    @property
    def create_thumbnail_function(self) -> str:
        return self.get_parameter('create-thumbnail-function', f'photo-thumbnail-create-{self.environment}')

    @property
    def delete_original_function(self) -> str:
        return self.get_parameter('delete-original-function', f'photo-objects-delete-{self.environment}')

    @property
    def delete_record_function(self) -> str:
        return self.get_parameter('delete-record-function', f'photo-record-delete-{self.environment}')

    @property
    def delete_thumbnail_function(self) -> str:
        return self.get_parameter('delete-thumbnail-function', f'photo-thumbnail-delete-{self.environment}')

    # Managed workflow engine
    @property
    def upload_state_machine_arn(self) -> str:
        """Step Functions state machine for uploads; empty means direct invocation only"""
        return self.get_parameter('upload-state-machine-arn', '') or ''

    @property
    def delete_state_machine_arn(self) -> str:
        """Step Functions state machine for deletes; empty means direct invocation only"""
        return self.get_parameter('delete-state-machine-arn', '') or ''

    @property
    def poll_interval_seconds(self) -> float:
        return self.get_float_parameter('poll-interval-seconds', 0.5)

    @property
    def execution_timeout_seconds(self) -> float:
        return self.get_float_parameter('execution-timeout-seconds', 300.0)

    @property
    def max_concurrent_steps(self) -> int:
        """Size of the worker pool used by the direct path"""
        return max(1, self.get_int_parameter('max-concurrent-steps', 4))

    # Authentication
    @property
    def token_secret_parameter(self) -> str:
        """Absolute SSM name of the token signing secret"""
        return self.get_parameter('token-secret-parameter', 'keytokenhash')

    @property
    def legacy_failure_markers(self) -> bool:
        """Classify free-text worker replies by 'Error'/'Failed' substrings"""
        return self.get_bool_parameter('legacy-failure-markers', False)

    @property
    def enable_debug_logging(self) -> bool:
        """Get debug logging flag"""
        return self.get_bool_parameter('enable-debug-logging', False)

    @property
    def cors_allowed_origin(self) -> str:
        """Origin returned in Access-Control-Allow-Origin"""
        return self.get_parameter('allowed-origin', '*')


# Global configuration instance
config = Config()
