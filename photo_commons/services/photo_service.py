"""
Photo service behind the worker functions
Each method is one workflow step: a record write/delete or an object put/delete
"""
from typing import Any, Dict, List, Optional
from botocore.exceptions import ClientError, BotoCoreError
from ..config import config
from ..constants import ImageConstants
from ..exceptions import S3OperationError
from ..error_handler import error_handler
from ..logger import worker_logger as logger
from ..models.photo import Photo
from ..processors.image import image_processor
from ..validation_utils import decode_base64_content, infer_image_type, resized_key


DEFAULT_DESCRIPTION = 'Uploaded photo'


class PhotoService:
    """
    Storage-side operations for photos

    Args:
        s3_client: boto3 S3 client
        record_store: Photo model (or a stand-in with the same classmethods)
    """

    def __init__(self, s3_client, record_store=Photo, image_processor_instance=None):
        self.s3_client = s3_client
        self.record_store = record_store
        self.image_processor = image_processor_instance or image_processor
        self.source_bucket = config.source_bucket_name
        self.resized_bucket = config.resized_bucket_name

    # Records
    def add_record(self, key: str, email: str, description: Optional[str] = None) -> Dict[str, Any]:
        logger.log_service_operation("add_record", s3_key=key, email=email)

        photo = self.record_store.create_record(key, email, description or DEFAULT_DESCRIPTION)
        return photo.to_dict()

    def delete_record(self, key: str) -> Dict[str, Any]:
        logger.log_service_operation("delete_record", s3_key=key)

        deleted = self.record_store.delete_record(key)
        return {'s3_key': key, 'rows_deleted': deleted}

    # Objects
    def upload_original(self, key: str, content: str) -> Dict[str, Any]:
        """
        Store the decoded original in the source bucket

        Raises:
            ValidationError: If content is not valid base64
            S3OperationError: If the put fails
        """
        logger.log_service_operation("upload_original", s3_key=key)

        image_bytes = decode_base64_content(content)
        content_type = self._content_type(key)
        self._put_object(self.source_bucket, key, image_bytes, content_type)

        return {'bucket': self.source_bucket, 'key': key, 'size': len(image_bytes)}

    def create_thumbnail(self, key: str, content: str) -> Dict[str, Any]:
        """
        Resize the original and store it as resized-<key> in the resized bucket

        Raises:
            ValidationError: If the key is not a jpg/png or content is not an image
            S3OperationError: If the put fails
        """
        logger.log_service_operation("create_thumbnail", s3_key=key)

        image_type = infer_image_type(key)
        image_bytes = decode_base64_content(content)
        thumbnail = self.image_processor.create_thumbnail(image_bytes, image_type)

        destination_key = resized_key(key)
        self._put_object(self.resized_bucket, destination_key, thumbnail['data'], thumbnail['content_type'])

        return {
            'bucket': self.resized_bucket,
            'key': destination_key,
            'size': len(thumbnail['data']),
            'dimensions': list(thumbnail['thumbnail_size'])
        }

    def delete_objects(self, keys: List[str]) -> Dict[str, Any]:
        """
        Delete originals from the source bucket and, where present, their thumbnails

        Deleting a missing object is not an error. Thumbnail cleanup failures are
        logged and reported but do not fail the call.

        Raises:
            S3OperationError: If an original cannot be deleted
        """
        logger.log_service_operation("delete_objects", keys=keys)

        deleted = []
        for key in keys:
            self._delete_object(self.source_bucket, key)
            deleted.append(key)

        thumbnails_deleted = True
        for key in keys:
            try:
                self._delete_object(self.resized_bucket, resized_key(key))
            except S3OperationError as e:
                thumbnails_deleted = False
                logger.warning("Could not delete thumbnail", s3_key=key, error_message=str(e))

        return {'deleted': deleted, 'thumbnails_deleted': thumbnails_deleted}

    def delete_thumbnail(self, key: str) -> Dict[str, Any]:
        logger.log_service_operation("delete_thumbnail", s3_key=key)

        destination_key = resized_key(key)
        self._delete_object(self.resized_bucket, destination_key)
        return {'bucket': self.resized_bucket, 'key': destination_key}

    @staticmethod
    def _content_type(key: str) -> str:
        extension = key.rsplit('.', 1)[-1].lower() if '.' in key else ''
        if extension in ImageConstants.SUPPORTED_TYPES:
            return ImageConstants.SUPPORTED_TYPES[extension][1]
        return 'application/octet-stream'

    def _put_object(self, bucket: str, key: str, data: bytes, content_type: str):
        try:
            self.s3_client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            logger.log_s3_operation(bucket, 'put_object', key, False, error=str(e))
            error_response = error_handler.handle_s3_error(e, 'put_object', bucket, key)
            raise S3OperationError(error_response['error_message'], 'put_object', bucket, key)

        logger.log_s3_operation(bucket, 'put_object', key, True, size=len(data))

    def _delete_object(self, bucket: str, key: str):
        try:
            self.s3_client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.log_s3_operation(bucket, 'delete_object', key, False, error=str(e))
            error_response = error_handler.handle_s3_error(e, 'delete_object', bucket, key)
            raise S3OperationError(error_response['error_message'], 'delete_object', bucket, key)

        logger.log_s3_operation(bucket, 'delete_object', key, True)
