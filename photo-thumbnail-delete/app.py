"""
Photo Thumbnail Delete Lambda Function
"""
from photo_commons.decorators import direct_lambda_handler
from photo_commons.services.service_container import get_service


@direct_lambda_handler(required_fields=['key'])
def lambda_handler(event, context):
    return get_service('photo_service').delete_thumbnail(event['parsed_body']['key'])
