"""
Orchestrate Delete Lambda Function
Authenticates the caller, checks photo ownership and runs the delete workflow
"""
from photo_commons.contracts import ActionKind, ActionRequest
from photo_commons.decorators import api_gateway_handler
from photo_commons.services.service_container import get_service


@api_gateway_handler()
def lambda_handler(event, context):
    """
    Request body: {key, token, email}

    Storage, record and thumbnail deletes run independently. A 403 is
    returned before any delete when the token or ownership check fails.
    """
    request = ActionRequest.from_body(ActionKind.DELETE, event['parsed_body'])
    result = get_service('workflow_orchestrator').handle(request)
    return result.to_lambda_response()
