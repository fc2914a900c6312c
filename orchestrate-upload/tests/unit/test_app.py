"""
Unit tests for the orchestrate-upload Lambda function
Workers run in-process against moto S3, DynamoDB and SSM
"""
import base64
import json
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from photo_commons.auth import OwnershipVerifier, TokenAuthenticator
from photo_commons.constants import StepNames
from photo_commons.contracts import ActionKind, ExecutionHandle, ExecutionResult
from photo_commons.exceptions import ManagedExecutionError
from photo_commons.models.photo import Photo
from photo_commons.services.orchestrator import WorkflowOrchestrator
from photo_commons.services.service_container import register_service
from photo_commons.services.worker_invoker import WorkerInvoker


UPLOAD_ARN = 'arn:aws:states:us-east-1:123456789012:stateMachine:photo-upload'


def object_keys(s3, bucket):
    return [item['Key'] for item in s3.list_objects_v2(Bucket=bucket).get('Contents', [])]


class TestOrchestrateUpload:

    @pytest.fixture(autouse=True)
    def setup(self, function_app, mock_aws_services, worker_lambda_client):
        self.app = function_app('orchestrate-upload')
        self.s3 = mock_aws_services['s3']
        self.ssm = mock_aws_services['ssm']
        self.lambda_client = worker_lambda_client
        self.poller = MagicMock()
        self.register_orchestrator(state_machine_arns={})

    def register_orchestrator(self, state_machine_arns):
        register_service('workflow_orchestrator', WorkflowOrchestrator(
            authenticator=TokenAuthenticator(ssm_client=self.ssm),
            ownership_verifier=OwnershipVerifier(),
            invoker=WorkerInvoker(self.lambda_client, legacy_failure_markers=False),
            poller=self.poller,
            state_machine_arns=state_machine_arns
        ))

    def event(self, api_gateway_event, **body):
        api_gateway_event['body'] = json.dumps(body)
        return api_gateway_event

    def test_upload_runs_every_step(self, api_gateway_event, lambda_context, sample_test_image,
                                    test_email, valid_token):
        event = self.event(api_gateway_event, key='cat.png', content=sample_test_image,
                           email=test_email, token=valid_token, description='A cat')

        response = self.app.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['success'] is True
        assert body['status'] == 'SUCCEEDED'
        assert body['strategy'] == 'direct'
        assert [step['outcome'] for step in body['steps'].values()] == ['SUCCESS', 'SUCCESS', 'SUCCESS']

        assert Photo.get('cat.png').email == test_email
        assert Photo.get('cat.png').description == 'A cat'
        assert object_keys(self.s3, 'photo-originals-test') == ['cat.png']
        assert object_keys(self.s3, 'photo-resized-test') == ['resized-cat.png']
        assert self.lambda_client.invocations == [
            'photo-record-add-test', 'photo-original-upload-test', 'photo-thumbnail-create-test'
        ]

    def test_invalid_token_touches_nothing(self, api_gateway_event, lambda_context, sample_test_image,
                                           test_email, token_for):
        event = self.event(api_gateway_event, key='cat.png', content=sample_test_image,
                           email=test_email, token=token_for('mallory@example.com'))

        response = self.app.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 403
        assert json.loads(response['body'])['error'] == 'Access denied'
        assert self.lambda_client.invocations == []
        assert object_keys(self.s3, 'photo-originals-test') == []

    def test_missing_content(self, api_gateway_event, lambda_context, test_email, valid_token):
        event = self.event(api_gateway_event, key='cat.png', email=test_email, token=valid_token)

        response = self.app.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 400
        assert self.lambda_client.invocations == []

    def test_missing_key(self, api_gateway_event, lambda_context, sample_test_image, test_email, valid_token):
        event = self.event(api_gateway_event, content=sample_test_image, email=test_email, token=valid_token)

        response = self.app.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 400
        assert json.loads(response['body'])['error'] == "Missing 'key' field in request body"

    def test_undecodable_body(self, api_gateway_event, lambda_context):
        api_gateway_event['body'] = 'not json at all'

        response = self.app.lambda_handler(api_gateway_event, lambda_context)

        assert response['statusCode'] == 400

    def test_base64_encoded_body(self, api_gateway_event, lambda_context, sample_test_image,
                                 test_email, valid_token):
        body = json.dumps({'key': 'dog.png', 'content': sample_test_image,
                           'email': test_email, 'token': valid_token})
        api_gateway_event['body'] = base64.b64encode(body.encode('utf-8')).decode('ascii')
        api_gateway_event['isBase64Encoded'] = True

        response = self.app.lambda_handler(api_gateway_event, lambda_context)

        assert response['statusCode'] == 200
        assert Photo.count_owned('dog.png', test_email) == 1

    def test_thumbnail_failure_is_best_effort(self, api_gateway_event, lambda_context, test_email, valid_token):
        content = base64.b64encode(b'plain text, not an image').decode('ascii')
        event = self.event(api_gateway_event, key='notes.txt', content=content,
                           email=test_email, token=valid_token)

        response = self.app.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['status'] == 'SUCCEEDED'
        assert body['steps'][StepNames.CREATE_THUMBNAIL]['outcome'] == 'FAILURE'
        assert object_keys(self.s3, 'photo-originals-test') == ['notes.txt']

    def test_managed_execution(self, api_gateway_event, lambda_context, sample_test_image,
                               test_email, valid_token):
        self.register_orchestrator({ActionKind.UPLOAD: UPLOAD_ARN})
        self.poller.start.return_value = ExecutionHandle(
            id=f'{UPLOAD_ARN}:run-1', started_at=datetime.now(timezone.utc)
        )
        self.poller.await_terminal.return_value = ExecutionResult(status='SUCCEEDED', output={'key': 'cat.png'})
        event = self.event(api_gateway_event, key='cat.png', content=sample_test_image,
                           email=test_email, token=valid_token)

        response = self.app.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['strategy'] == 'managed'
        assert body['output'] == {'key': 'cat.png'}
        assert self.lambda_client.invocations == []

    def test_managed_failure_falls_back_to_workers(self, api_gateway_event, lambda_context,
                                                   sample_test_image, test_email, valid_token):
        self.register_orchestrator({ActionKind.UPLOAD: UPLOAD_ARN})
        self.poller.start.side_effect = ManagedExecutionError('Workflow resource not found')
        event = self.event(api_gateway_event, key='cat.png', content=sample_test_image,
                           email=test_email, token=valid_token)

        response = self.app.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 200
        assert json.loads(response['body'])['strategy'] == 'direct'
        assert len(self.lambda_client.invocations) == 3

    def test_upload_to_key_owned_by_other_user(self, api_gateway_event, lambda_context, sample_test_image,
                                               sample_png_bytes, test_email, token_for):
        Photo.create_record('cat.png', test_email, 'A cat')
        self.s3.put_object(Bucket='photo-originals-test', Key='cat.png', Body=sample_png_bytes)
        event = self.event(api_gateway_event, key='cat.png', content=sample_test_image,
                           email='mallory@example.com', token=token_for('mallory@example.com'))

        response = self.app.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 403
        assert json.loads(response['body'])['error'] == 'Access denied'
        assert self.lambda_client.invocations == []
        assert Photo.get('cat.png').email == test_email
        assert Photo.get('cat.png').description == 'A cat'
        assert self.s3.get_object(Bucket='photo-originals-test', Key='cat.png')['Body'].read() == sample_png_bytes

    def test_owner_can_upload_same_key_again(self, api_gateway_event, lambda_context, sample_test_image,
                                             test_email, valid_token):
        event = self.event(api_gateway_event, key='cat.png', content=sample_test_image,
                           email=test_email, token=valid_token)

        first = self.app.lambda_handler(event, lambda_context)
        second = self.app.lambda_handler(event, lambda_context)

        assert first['statusCode'] == second['statusCode'] == 200
        assert json.loads(first['body'])['status'] == json.loads(second['body'])['status'] == 'SUCCEEDED'
        assert Photo.count_owned('cat.png', test_email) == 1
        assert object_keys(self.s3, 'photo-originals-test') == ['cat.png']
        assert object_keys(self.s3, 'photo-resized-test') == ['resized-cat.png']

    def test_failed_upload_repeats_with_same_status(self, api_gateway_event, lambda_context, sample_test_image,
                                                    test_email, valid_token):
        self.s3.delete_bucket(Bucket='photo-originals-test')
        event = self.event(api_gateway_event, key='cat.png', content=sample_test_image,
                           email=test_email, token=valid_token)

        first = self.app.lambda_handler(event, lambda_context)
        second = self.app.lambda_handler(event, lambda_context)

        assert json.loads(first['body'])['status'] == json.loads(second['body'])['status'] == 'PARTIAL_FAILURE'
        assert first['statusCode'] == second['statusCode'] == 200
