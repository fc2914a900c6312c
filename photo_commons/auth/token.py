"""
Stateless token authentication for photo-service

A token is base64(HMAC-SHA256(secret, email)). The secret lives in SSM
Parameter Store and is recomputed against on every request, so there is no
session store to consult or invalidate.
"""
import os
import hmac
import base64
import hashlib
from typing import Optional
from botocore.exceptions import ClientError, BotoCoreError
from ..config import config
from ..contracts import Identity, Credential
from ..error_handler import error_handler
from ..exceptions import AuthenticationError
from ..logger import auth_logger as logger


SECRET_ENV_FALLBACK = 'SECRET_KEY'


class TokenAuthenticator:
    """
    Issues and verifies HMAC tokens bound to an email address
    """

    def __init__(self, ssm_client=None, secret_parameter: str = None):
        self._ssm_client = ssm_client
        self.secret_parameter = secret_parameter or config.token_secret_parameter

    @property
    def ssm_client(self):
        if self._ssm_client is None:
            self._ssm_client = config.ssm_client
        return self._ssm_client

    def _fetch_secret(self) -> Optional[str]:
        """
        Read the signing secret, falling back to the SECRET_KEY environment value

        Not cached: a rotated secret takes effect on the next request.
        """
        client = self.ssm_client
        if client is not None:
            try:
                response = client.get_parameter(Name=self.secret_parameter, WithDecryption=True)
                return response['Parameter']['Value']
            except (ClientError, BotoCoreError) as e:
                error_handler.handle_ssm_error(e, self.secret_parameter)
            except Exception as e:
                # Malformed reply or a non-boto client
                logger.error("Token secret lookup failed", error=e, parameter_name=self.secret_parameter)

        secret = os.environ.get(SECRET_ENV_FALLBACK)
        if secret:
            logger.warning("Using environment token secret", parameter_name=self.secret_parameter)
        return secret or None

    @staticmethod
    def _sign(secret: str, email: str) -> str:
        digest = hmac.new(secret.encode('utf-8'), email.encode('utf-8'), hashlib.sha256).digest()
        return base64.b64encode(digest).decode('ascii')

    def issue(self, email: str) -> str:
        """
        Produce the token for an email

        Raises:
            AuthenticationError: If email is empty or no secret is available
        """
        if not email:
            raise AuthenticationError('Email is required to issue a token')

        secret = self._fetch_secret()
        if not secret:
            raise AuthenticationError('Token secret unavailable')

        logger.info("Token issued", email=email)
        return self._sign(secret, email)

    def verify(self, identity_claim: Identity, credential: Credential) -> bool:
        """
        Check that a credential was issued for the claimed email

        Never raises; any missing input or secret failure is a rejection.
        """
        email = identity_claim.email if identity_claim else ''
        token = credential.token if credential else ''

        if not email or not token:
            logger.warning("Token verification rejected", email=email or None, reason='missing_input')
            return False

        secret = self._fetch_secret()
        if not secret:
            logger.warning("Token verification rejected", email=email, reason='secret_unavailable')
            return False

        expected = self._sign(secret, email)
        valid = hmac.compare_digest(expected.encode('utf-8'), token.encode('utf-8'))

        logger.info("Token verification", email=email, valid=valid)
        return valid
