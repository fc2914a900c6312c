"""
Photo Record Add Lambda Function
Writes the photo record {s3_key, email, description} after re-checking the token
"""
from photo_commons.contracts import Identity, Credential
from photo_commons.decorators import direct_lambda_handler
from photo_commons.exceptions import AuthenticationError
from photo_commons.services.service_container import get_service
from photo_commons.validation_utils import optional_string


@direct_lambda_handler(required_fields=['key', 'email', 'token'])
def lambda_handler(event, context):
    body = event['parsed_body']
    email = optional_string(body, 'email')

    # The record names its owner, so the owner claim is checked here as well
    authenticator = get_service('token_authenticator')
    if not authenticator.verify(Identity(email), Credential(optional_string(body, 'token'))):
        raise AuthenticationError('Invalid or expired token')

    return get_service('photo_service').add_record(
        optional_string(body, 'key'),
        email,
        optional_string(body, 'description')
    )
