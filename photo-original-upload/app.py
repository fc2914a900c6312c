"""
Photo Original Upload Lambda Function
Stores the decoded original image in the source bucket
"""
from photo_commons.decorators import direct_lambda_handler
from photo_commons.services.service_container import get_service


@direct_lambda_handler(required_fields=['key', 'content'])
def lambda_handler(event, context):
    body = event['parsed_body']
    return get_service('photo_service').upload_original(body['key'], body['content'])
