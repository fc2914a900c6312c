"""
Token Generate Lambda Function
Issues and verifies the HMAC tokens used by the orchestrators
"""
import json
from photo_commons.constants import HTTPConstants
from photo_commons.contracts import Identity, Credential
from photo_commons.decorators import api_gateway_handler
from photo_commons.exceptions import AuthenticationError
from photo_commons.services.service_container import get_service
from photo_commons.utils import create_response, create_error_response
from photo_commons.validation_utils import optional_string


REQUEST_TOKEN = 'request_token'
VERIFY_TOKEN = 'verify_token'


@api_gateway_handler()
def lambda_handler(event, context):
    body = event['parsed_body']
    action = optional_string(body, 'action')
    email = optional_string(body, 'email')

    if action not in (REQUEST_TOKEN, VERIFY_TOKEN):
        return create_error_response(
            HTTPConstants.BAD_REQUEST,
            f"Invalid action. Use '{REQUEST_TOKEN}' or '{VERIFY_TOKEN}'"
        )

    if not email:
        return create_error_response(HTTPConstants.BAD_REQUEST, "Missing 'email' field in request body")

    authenticator = get_service('token_authenticator')

    if action == REQUEST_TOKEN:
        try:
            token = authenticator.issue(email)
        except AuthenticationError as e:
            return create_error_response(HTTPConstants.INTERNAL_SERVER_ERROR, e.message)

        return create_response(HTTPConstants.OK, json.dumps({
            'success': True,
            'message': 'Token generated successfully',
            'email': email,
            'token': token
        }))

    token = optional_string(body, 'token')
    if not token:
        return create_error_response(HTTPConstants.BAD_REQUEST, "Missing 'token' field in request body",
                                     {'valid': False})

    valid = authenticator.verify(Identity(email), Credential(token))
    return create_response(HTTPConstants.OK, json.dumps({
        'success': True,
        'valid': valid,
        'email': email,
        'message': 'Token is valid' if valid else 'Token is invalid'
    }))
