"""
Photo Thumbnail Create Lambda Function
Resizes a jpg/png original to fit 100x100 and stores it as resized-<key>
"""
from photo_commons.decorators import direct_lambda_handler
from photo_commons.services.service_container import get_service


@direct_lambda_handler(required_fields=['key', 'content'])
def lambda_handler(event, context):
    body = event['parsed_body']
    return get_service('photo_service').create_thumbnail(body['key'], body['content'])
