"""
Orchestrate Upload Lambda Function
Authenticates the caller and runs the upload workflow:
insert-record -> upload-original -> create-thumbnail
"""
from photo_commons.contracts import ActionKind, ActionRequest
from photo_commons.decorators import api_gateway_handler
from photo_commons.services.service_container import get_service


@api_gateway_handler()
def lambda_handler(event, context):
    """
    Request body: {key, content, token, email, description?}

    Responds 200 with the workflow report, 400 for a missing key or content,
    403 for a bad token or a key owned by another user and 500 when the
    insert step fails.
    """
    request = ActionRequest.from_body(ActionKind.UPLOAD, event['parsed_body'])
    result = get_service('workflow_orchestrator').handle(request)
    return result.to_lambda_response()
