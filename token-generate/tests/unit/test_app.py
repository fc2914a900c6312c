"""
Unit tests for the token-generate Lambda function
"""
import json
import pytest
from unittest.mock import MagicMock

from photo_commons.exceptions import AuthenticationError
from photo_commons.services.service_container import register_service


class TestTokenGenerate:

    @pytest.fixture(autouse=True)
    def setup(self, function_app, mock_aws_services):
        self.app = function_app('token-generate')

    def call(self, api_gateway_event, lambda_context, **body):
        api_gateway_event['body'] = json.dumps(body)
        response = self.app.lambda_handler(api_gateway_event, lambda_context)
        return response['statusCode'], json.loads(response['body'])

    def test_request_token(self, api_gateway_event, lambda_context, test_email, valid_token):
        status, body = self.call(api_gateway_event, lambda_context, action='request_token', email=test_email)

        assert status == 200
        assert body['success'] is True
        assert body['email'] == test_email
        assert body['token'] == valid_token

    def test_issued_token_verifies(self, api_gateway_event, lambda_context, test_email):
        _, issued = self.call(api_gateway_event, lambda_context, action='request_token', email=test_email)

        status, body = self.call(api_gateway_event, lambda_context,
                                 action='verify_token', email=test_email, token=issued['token'])

        assert status == 200
        assert body['valid'] is True
        assert body['message'] == 'Token is valid'

    def test_token_for_other_email_is_invalid(self, api_gateway_event, lambda_context, valid_token):
        status, body = self.call(api_gateway_event, lambda_context,
                                 action='verify_token', email='mallory@example.com', token=valid_token)

        assert status == 200
        assert body['valid'] is False

    def test_verify_without_token(self, api_gateway_event, lambda_context, test_email):
        status, body = self.call(api_gateway_event, lambda_context, action='verify_token', email=test_email)

        assert status == 400
        assert body['valid'] is False

    @pytest.mark.parametrize('action', [None, 'delete_token', ''])
    def test_invalid_action(self, api_gateway_event, lambda_context, test_email, action):
        status, body = self.call(api_gateway_event, lambda_context, action=action, email=test_email)

        assert status == 400
        assert 'Invalid action' in body['error']

    def test_missing_email(self, api_gateway_event, lambda_context):
        status, body = self.call(api_gateway_event, lambda_context, action='request_token')

        assert status == 400
        assert 'email' in body['error']

    def test_secret_unavailable(self, api_gateway_event, lambda_context, test_email):
        authenticator = MagicMock()
        authenticator.issue.side_effect = AuthenticationError('Token secret unavailable')
        register_service('token_authenticator', authenticator)

        status, body = self.call(api_gateway_event, lambda_context, action='request_token', email=test_email)

        assert status == 500
        assert body['error'] == 'Token secret unavailable'
