from .token import TokenAuthenticator
from .ownership import OwnershipVerifier

__all__ = ['TokenAuthenticator', 'OwnershipVerifier']
