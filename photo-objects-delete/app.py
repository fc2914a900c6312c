"""
Photo Objects Delete Lambda Function
Deletes originals (and their thumbnails) for one key or a list of keys

A single key arrives from the delete orchestrator, which has already checked
ownership. A key list is only honoured for a verified caller who owns every
key in it.
"""
from photo_commons.contracts import Identity, Credential
from photo_commons.decorators import direct_lambda_handler
from photo_commons.exceptions import AuthenticationError, OwnershipConflictError, ValidationError
from photo_commons.services.service_container import get_service
from photo_commons.validation_utils import optional_string


def extract_keys(body: dict) -> list:
    if body.get('key'):
        return [str(body['key'])]

    keys = body.get('keys')
    if isinstance(keys, list) and keys and all(isinstance(k, str) and k for k in keys):
        return keys

    raise ValidationError("Missing 'key' or 'keys' field", field='key')


def authorize_keys(body: dict, keys: list):
    """
    Verify the caller's token, then ownership of each key in turn

    Raises:
        AuthenticationError: If the token does not match the email
        OwnershipConflictError: On the first key the caller does not own
    """
    identity = Identity(optional_string(body, 'email') or '')
    credential = Credential(optional_string(body, 'token') or '')
    if not get_service('token_authenticator').verify(identity, credential):
        raise AuthenticationError('Invalid or expired token')

    verifier = get_service('ownership_verifier')
    for key in keys:
        if not verifier.owns(key, identity):
            raise OwnershipConflictError('Access denied', key=key)


@direct_lambda_handler()
def lambda_handler(event, context):
    body = event['parsed_body']
    keys = extract_keys(body)
    if not body.get('key'):
        authorize_keys(body, keys)
    return get_service('photo_service').delete_objects(keys)
