"""
Unit tests for WorkerInvoker reply classification
"""
import io
import json
import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError, ReadTimeoutError

from photo_commons.contracts import OutcomeKind
from photo_commons.services.worker_invoker import WorkerInvoker


def invoke_response(payload, status_code=200, function_error=None):
    if not isinstance(payload, (bytes, str)):
        payload = json.dumps(payload)
    if isinstance(payload, str):
        payload = payload.encode('utf-8')
    response = {'StatusCode': status_code, 'Payload': io.BytesIO(payload)}
    if function_error:
        response['FunctionError'] = function_error
    return response


@pytest.fixture
def lambda_client():
    return MagicMock()


@pytest.fixture
def invoker(lambda_client):
    return WorkerInvoker(lambda_client, legacy_failure_markers=False)


@pytest.fixture
def legacy_invoker(lambda_client):
    return WorkerInvoker(lambda_client, legacy_failure_markers=True)


class TestInvocation:
    """The lambda:Invoke call itself"""

    def test_request_response_invocation(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response({'success': True, 'data': {}})
        request = {'httpMethod': 'POST', 'body': '{"key": "cat.png"}'}

        invoker.call('photo-record-add-test', request)

        lambda_client.invoke.assert_called_once_with(
            FunctionName='photo-record-add-test',
            InvocationType='RequestResponse',
            Payload=json.dumps(request).encode('utf-8')
        )

    def test_client_error_is_failure(self, invoker, lambda_client):
        lambda_client.invoke.side_effect = ClientError(
            {'Error': {'Code': 'ResourceNotFoundException', 'Message': 'not found'}}, 'Invoke'
        )

        outcome = invoker.call('missing-worker', {})

        assert outcome.kind is OutcomeKind.FAILURE
        assert 'missing-worker' in outcome.reason

    def test_transport_error_is_failure(self, invoker, lambda_client):
        lambda_client.invoke.side_effect = ReadTimeoutError(endpoint_url='https://lambda')

        outcome = invoker.call('slow-worker', {})

        assert outcome.kind is OutcomeKind.FAILURE


class TestClassification:
    """Ordered classification of worker replies"""

    def test_structured_success_is_unwrapped(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(
            {'success': True, 'data': {'s3_key': 'cat.png'}, 'metadata': {}}
        )

        outcome = invoker.call('worker', {})

        assert outcome.is_success
        assert outcome.body == {'s3_key': 'cat.png'}

    def test_structured_failure(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(
            {'success': False, 'error': {'code': 'S3_OPERATION_ERROR', 'message': 'Storage bucket not found'}}
        )

        outcome = invoker.call('worker', {})

        assert outcome.kind is OutcomeKind.FAILURE
        assert outcome.reason == 'Storage bucket not found'
        assert outcome.code == 'S3_OPERATION_ERROR'

    def test_function_error_wins_over_payload(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(
            {'errorMessage': 'division by zero', 'errorType': 'ZeroDivisionError'},
            function_error='Unhandled'
        )

        outcome = invoker.call('worker', {})

        assert outcome.kind is OutcomeKind.FAILURE
        assert 'Unhandled' in outcome.reason
        assert 'division by zero' in outcome.reason

    def test_non_2xx_invocation_status(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response({'success': True, 'data': {}}, status_code=500)

        outcome = invoker.call('worker', {})

        assert outcome.kind is OutcomeKind.FAILURE
        assert '500' in outcome.reason

    def test_api_gateway_error_status(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(
            {'statusCode': 403, 'body': json.dumps({'error': 'Invalid or expired token'})}
        )

        outcome = invoker.call('worker', {})

        assert outcome.kind is OutcomeKind.FAILURE
        assert '403' in outcome.reason

    def test_api_gateway_success_body_is_unwrapped(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(
            {'statusCode': 200, 'body': json.dumps({'deleted': ['cat.png']})}
        )

        outcome = invoker.call('worker', {})

        assert outcome.is_success
        assert outcome.body == {'deleted': ['cat.png']}

    def test_api_gateway_success_with_structured_failure_body(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(
            {'statusCode': 200, 'body': json.dumps({'success': False, 'error': 'Row not inserted'})}
        )

        outcome = invoker.call('worker', {})

        assert outcome.kind is OutcomeKind.FAILURE
        assert outcome.reason == 'Row not inserted'

    def test_free_text_is_malformed_by_default(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(b'Photo uploaded')

        outcome = invoker.call('worker', {})

        assert outcome.kind is OutcomeKind.FAILURE
        assert outcome.reason.startswith('Malformed worker reply')

    def test_empty_payload_is_malformed(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(b'')

        assert invoker.call('worker', {}).kind is OutcomeKind.FAILURE

    def test_success_word_inside_json_is_not_a_marker(self, invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(
            {'success': True, 'data': {'message': 'No Error here, nothing Failed'}}
        )

        assert invoker.call('worker', {}).is_success


class TestLegacyFailureMarkers:
    """Substring heuristic, only with legacy_failure_markers enabled"""

    @pytest.mark.parametrize('text', [b'Error: bucket missing', b'Upload Failed'])
    def test_marker_text_is_failure(self, legacy_invoker, lambda_client, text):
        lambda_client.invoke.return_value = invoke_response(text)

        assert legacy_invoker.call('worker', {}).kind is OutcomeKind.FAILURE

    def test_plain_text_is_success(self, legacy_invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(b'Photo uploaded')

        outcome = legacy_invoker.call('worker', {})

        assert outcome.is_success
        assert outcome.body == 'Photo uploaded'

    def test_json_string_payload_with_marker(self, legacy_invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response(json.dumps('Error: could not resize'))

        assert legacy_invoker.call('worker', {}).kind is OutcomeKind.FAILURE

    def test_api_gateway_text_body_with_marker(self, legacy_invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response({'statusCode': 200, 'body': 'Insert Failed'})

        assert legacy_invoker.call('worker', {}).kind is OutcomeKind.FAILURE

    def test_structured_checks_still_apply(self, legacy_invoker, lambda_client):
        lambda_client.invoke.return_value = invoke_response({'success': False, 'error': 'nope'})

        assert legacy_invoker.call('worker', {}).kind is OutcomeKind.FAILURE
