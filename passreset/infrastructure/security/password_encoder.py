"""Bcrypt password encoder.

Hashing uses passlib's ``CryptContext`` with bcrypt at the configured work
factor. Digests produced by older work factors still verify.
"""

import logging

import structlog
from passlib.context import CryptContext

from passreset.domain.interfaces.collaborators import IPasswordEncoder

logger = structlog.get_logger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)


class BcryptPasswordEncoder(IPasswordEncoder):
    """One-way password hashing with bcrypt.

    Args:
        rounds: Bcrypt work factor.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        logger.info("BcryptPasswordEncoder initialized", rounds=rounds)

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        """Checks ``plaintext`` against ``digest`` in constant time.

        Malformed or foreign digests never match.
        """
        if not plaintext or not digest:
            return False
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError) as e:
            logger.warning("Password digest could not be verified", error=str(e))
            return False
