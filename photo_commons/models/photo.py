"""
PynamoDB model for Photo records
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pynamodb.models import Model
from pynamodb.attributes import UnicodeAttribute, UTCDateTimeAttribute
from pynamodb.exceptions import DoesNotExist, PutError, PynamoDBException
from ..config import config
from ..exceptions import DynamoDBError, OwnershipConflictError
from ..logger import worker_logger as logger
from ..error_handler import error_handler


class Photo(Model):
    """
    One uploaded photo, keyed by its object key in the source bucket

    The email attribute is the owner; ownership checks filter on it.
    """

    class Meta:
        table_name = config.photo_table_name
        region = config.aws_region
        billing_mode = 'PAY_PER_REQUEST'

    s3_key = UnicodeAttribute(hash_key=True)
    email = UnicodeAttribute()
    description = UnicodeAttribute(null=True)

    created_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))

    @classmethod
    def create_record(cls, s3_key: str, email: str, description: Optional[str] = None) -> 'Photo':
        """
        Write a photo record

        The put only succeeds when the key is new or already owned by email,
        so the same owner can rewrite it but nobody else can claim it.

        Raises:
            OwnershipConflictError: If the key belongs to another email
            DynamoDBError: If the put fails
        """
        try:
            photo = cls(s3_key=s3_key, email=email, description=description)
            photo.save(condition=cls.s3_key.does_not_exist() | (cls.email == email))

            logger.log_database_operation(
                table_name=cls.Meta.table_name,
                operation='create',
                success=True,
                s3_key=s3_key
            )
            return photo

        except PutError as e:
            if e.cause_response_code != 'ConditionalCheckFailedException':
                raise cls._database_error(e, 'create_record', s3_key)
            logger.warning("Photo record owned by another user", s3_key=s3_key, email=email)
            raise OwnershipConflictError(key=s3_key)

        except PynamoDBException as e:
            raise cls._database_error(e, 'create_record', s3_key)

    @classmethod
    def _database_error(cls, e: PynamoDBException, operation: str, s3_key: str) -> DynamoDBError:
        logger.log_database_operation(
            table_name=cls.Meta.table_name,
            operation=operation,
            success=False,
            s3_key=s3_key,
            error=str(e)
        )
        error_response = error_handler.handle_dynamodb_error(e, operation, cls.Meta.table_name)
        return DynamoDBError(error_response['error_message'], operation, cls.Meta.table_name, str(e))

    @classmethod
    def owner_of(cls, s3_key: str) -> Optional[str]:
        """
        Email recorded as the owner of s3_key, or None when there is no record

        Raises:
            DynamoDBError: If the lookup fails
        """
        try:
            return cls.get(s3_key).email
        except DoesNotExist:
            return None
        except PynamoDBException as e:
            raise cls._database_error(e, 'owner_of', s3_key)

    @classmethod
    def count_owned(cls, s3_key: str, email: str) -> int:
        """
        Number of records for s3_key owned by email (0 or 1)

        Raises:
            DynamoDBError: If the query fails
        """
        try:
            count = cls.count(s3_key, filter_condition=cls.email == email)

            logger.log_database_operation(
                table_name=cls.Meta.table_name,
                operation='count',
                success=True,
                s3_key=s3_key,
                count=count
            )
            return count

        except PynamoDBException as e:
            logger.log_database_operation(
                table_name=cls.Meta.table_name,
                operation='count',
                success=False,
                s3_key=s3_key,
                error=str(e)
            )
            error_response = error_handler.handle_dynamodb_error(e, 'count_owned', cls.Meta.table_name)
            raise DynamoDBError(error_response['error_message'], 'count_owned', cls.Meta.table_name, str(e))

    @classmethod
    def delete_record(cls, s3_key: str) -> int:
        """
        Delete the record for s3_key

        Returns:
            Number of records deleted; 0 when it was already gone

        Raises:
            DynamoDBError: If the delete fails
        """
        try:
            photo = cls.get(s3_key)
        except DoesNotExist:
            logger.info("Photo record already absent", s3_key=s3_key)
            return 0
        except PynamoDBException as e:
            error_response = error_handler.handle_dynamodb_error(e, 'get', cls.Meta.table_name)
            raise DynamoDBError(error_response['error_message'], 'get', cls.Meta.table_name, str(e))

        try:
            photo.delete()
        except PynamoDBException as e:
            logger.log_database_operation(
                table_name=cls.Meta.table_name,
                operation='delete',
                success=False,
                s3_key=s3_key,
                error=str(e)
            )
            error_response = error_handler.handle_dynamodb_error(e, 'delete_record', cls.Meta.table_name)
            raise DynamoDBError(error_response['error_message'], 'delete_record', cls.Meta.table_name, str(e))

        logger.log_database_operation(
            table_name=cls.Meta.table_name,
            operation='delete',
            success=True,
            s3_key=s3_key
        )
        return 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            's3_key': self.s3_key,
            'email': self.email,
            'description': self.description,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
