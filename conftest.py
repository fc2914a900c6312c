"""
Pytest configuration and fixtures for photo-service tests
Provides AWS mocking (moto), Lambda app loading and common test data
"""
import base64
import hashlib
import hmac
import importlib.util
import io
import json
import os
import pytest
import boto3
from moto import mock_aws
from PIL import Image


# Set test environment variables before photo_commons is imported
os.environ.update({
    'AWS_DEFAULT_REGION': 'us-east-1',
    'AWS_REGION': 'us-east-1',
    'AWS_ACCESS_KEY_ID': 'testing',
    'AWS_SECRET_ACCESS_KEY': 'testing',
    'AWS_SECURITY_TOKEN': 'testing',
    'AWS_SESSION_TOKEN': 'testing',
    'ENVIRONMENT': 'test',
    'USE_PARAMETER_STORE': 'false',
    'PHOTO_TABLE_NAME': 'Photos-test',
    'BUCKET_NAME': 'photo-originals-test',
    'RESIZED_BUCKET_NAME': 'photo-resized-test',
})
os.environ.pop('SECRET_KEY', None)

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))

TEST_SECRET = 'test-token-secret'
TEST_SECRET_PARAMETER = 'keytokenhash'
TEST_EMAIL = 'alice@example.com'


def make_token(email: str, secret: str = TEST_SECRET) -> str:
    """Token as issued by TokenAuthenticator for this secret"""
    digest = hmac.new(secret.encode('utf-8'), email.encode('utf-8'), hashlib.sha256).digest()
    return base64.b64encode(digest).decode('ascii')


@pytest.fixture(autouse=True)
def clear_service_container():
    """Each test starts with an empty service container"""
    from photo_commons.services.service_container import clear_services
    clear_services()
    yield
    clear_services()


@pytest.fixture
def aws_credentials():
    """Mocked AWS Credentials for moto"""
    os.environ.update({
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing'
    })


@pytest.fixture
def mock_aws_services(aws_credentials):
    """Setup S3, SSM and DynamoDB with moto mocking"""
    with mock_aws():
        create_test_tables()
        create_test_s3_buckets()
        create_test_ssm_parameters()

        yield {
            'dynamodb': boto3.resource('dynamodb', region_name='us-east-1'),
            's3': boto3.client('s3', region_name='us-east-1'),
            'ssm': boto3.client('ssm', region_name='us-east-1')
        }


def create_test_tables():
    """Create the photo record table"""
    dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

    photo_table = dynamodb.create_table(
        TableName=os.environ['PHOTO_TABLE_NAME'],
        KeySchema=[
            {'AttributeName': 's3_key', 'KeyType': 'HASH'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 's3_key', 'AttributeType': 'S'}
        ],
        BillingMode='PAY_PER_REQUEST'
    )
    photo_table.wait_until_exists()


def create_test_s3_buckets():
    """Create source and resized buckets"""
    s3 = boto3.client('s3', region_name='us-east-1')
    s3.create_bucket(Bucket=os.environ['BUCKET_NAME'])
    s3.create_bucket(Bucket=os.environ['RESIZED_BUCKET_NAME'])


def create_test_ssm_parameters():
    """Create the token signing secret"""
    ssm = boto3.client('ssm', region_name='us-east-1')
    ssm.put_parameter(Name=TEST_SECRET_PARAMETER, Value=TEST_SECRET, Type='SecureString')


class LambdaContext:
    """Minimal Lambda context"""
    function_name = 'test-function'
    function_version = '$LATEST'
    invoked_function_arn = 'arn:aws:lambda:us-east-1:123456789012:function:test-function'
    memory_limit_in_mb = 128
    aws_request_id = 'test-request-id'

    def get_remaining_time_in_millis(self):
        return 30000


@pytest.fixture
def lambda_context():
    """Mock Lambda context"""
    return LambdaContext()


@pytest.fixture
def function_app():
    """
    Load <function-dir>/app.py under a unique module name

    Every function directory has an app.py, so they cannot all be imported as 'app'.
    """
    def load(function_dir: str):
        path = os.path.join(ROOT_DIR, function_dir, 'app.py')
        module_name = f"{function_dir.replace('-', '_')}_app"
        spec = importlib.util.spec_from_file_location(module_name, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    return load


@pytest.fixture
def api_gateway_event():
    """Mock API Gateway event"""
    return {
        'httpMethod': 'POST',
        'path': '/test',
        'resource': '/test',
        'requestContext': {
            'accountId': '123456789012',
            'apiId': 'test-api',
            'stage': 'test',
            'requestId': 'test-request-id',
            'identity': {
                'sourceIp': '127.0.0.1'
            }
        },
        'headers': {
            'Content-Type': 'application/json'
        },
        'queryStringParameters': None,
        'body': json.dumps({}),
        'isBase64Encoded': False
    }


def worker_event(body: dict) -> dict:
    """Event as delivered to a worker by the orchestrator"""
    return {
        'httpMethod': 'POST',
        'body': json.dumps(body),
        'headers': {'Content-Type': 'application/json'}
    }


@pytest.fixture
def sample_png_bytes():
    """A 300x200 PNG"""
    img = Image.new('RGB', (300, 200), color='red')
    img_bytes = io.BytesIO()
    img.save(img_bytes, format='PNG')
    return img_bytes.getvalue()


@pytest.fixture
def sample_test_image(sample_png_bytes):
    """The sample PNG in base64"""
    return base64.b64encode(sample_png_bytes).decode('utf-8')


@pytest.fixture
def valid_token():
    return make_token(TEST_EMAIL)


@pytest.fixture
def token_for():
    """make_token as a fixture, for tests that sign other emails or secrets"""
    return make_token


@pytest.fixture
def make_worker_event():
    return worker_event


@pytest.fixture
def test_email():
    return TEST_EMAIL


WORKER_FUNCTION_DIRS = (
    'photo-record-add',
    'photo-original-upload',
    'photo-thumbnail-create',
    'photo-objects-delete',
    'photo-record-delete',
    'photo-thumbnail-delete',
)


class InProcessLambdaClient:
    """
    Lambda client stand-in that runs worker handlers in this process

    Function names follow the default '<function-dir>-<environment>' naming.
    """

    def __init__(self, handlers, context):
        self.handlers = handlers
        self.context = context
        self.invocations = []

    def invoke(self, FunctionName, InvocationType, Payload):
        self.invocations.append(FunctionName)
        result = self.handlers[FunctionName](json.loads(Payload), self.context)
        return {'StatusCode': 200, 'Payload': io.BytesIO(json.dumps(result).encode('utf-8'))}


@pytest.fixture
def worker_lambda_client(function_app, lambda_context):
    """Routes worker invocations to the worker apps in this repository"""
    environment = os.environ['ENVIRONMENT']
    handlers = {
        f'{function_dir}-{environment}': function_app(function_dir).lambda_handler
        for function_dir in WORKER_FUNCTION_DIRS
    }
    return InProcessLambdaClient(handlers, lambda_context)
