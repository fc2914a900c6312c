"""
Resource ownership checks against the photo record store
"""
from ..contracts import Identity
from ..logger import auth_logger as logger


class OwnershipVerifier:
    """
    Answers whether an authenticated identity owns, or may write, a photo key

    record_store is anything with count_owned(key, email) -> int and
    owner_of(key) -> Optional[str]; the PynamoDB Photo model by default.
    Every call is a fresh lookup and any lookup failure denies.
    """

    def __init__(self, record_store=None):
        if record_store is None:
            from ..models.photo import Photo
            record_store = Photo
        self.record_store = record_store

    def owns(self, key: str, identity: Identity) -> bool:
        if not key or identity is None or not identity.email:
            return False

        try:
            count = self.record_store.count_owned(key, identity.email)
        except Exception as e:
            # Fail closed
            logger.error("Ownership lookup failed", error=e, s3_key=key, email=identity.email)
            return False

        owned = count > 0
        logger.info("Ownership check", s3_key=key, email=identity.email, owned=owned)
        return owned

    def may_write(self, key: str, identity: Identity) -> bool:
        """True when key has no record yet or its record belongs to identity"""
        if not key or identity is None or not identity.email:
            return False

        try:
            owner = self.record_store.owner_of(key)
        except Exception as e:
            logger.error("Ownership lookup failed", error=e, s3_key=key, email=identity.email)
            return False

        allowed = owner is None or owner == identity.email
        logger.info("Write ownership check", s3_key=key, email=identity.email,
                    existing=owner is not None, allowed=allowed)
        return allowed
