"""
Signature algorithm strategies

Each algorithm is an object exposing its wire name and a ``sign`` method.
New algorithms are added by registering another strategy, the signer never
branches on algorithm names.
"""

import base64
import threading
from abc import ABC, abstractmethod
from typing import Dict, List

from cryptography.hazmat.primitives import hashes, hmac

from ..exceptions import SignatureError
from .types import SignatureMethod


class SignatureAlgorithm(ABC):
    """Strategy interface for computing a signature over a base string"""

    #: Value sent as ``oauth_signature_method``
    name: str = ""

    @abstractmethod
    def sign(self, key: bytes, message: bytes) -> bytes:
        """Return the raw signature bytes for ``message`` under ``key``."""

    def sign_to_base64(self, key: bytes, message: bytes) -> str:
        """Return the signature as a base64 string."""
        return base64.b64encode(self.sign(key, message)).decode('ascii')


class HmacSha256(SignatureAlgorithm):
    """HMAC with SHA-256"""

    name = SignatureMethod.HMAC_SHA256.value

    def sign(self, key: bytes, message: bytes) -> bytes:
        if not key:
            raise SignatureError("HMAC key material is empty", details={'algorithm': self.name})
        h = hmac.HMAC(key, hashes.SHA256())
        h.update(message)
        return h.finalize()


_registry: Dict[str, SignatureAlgorithm] = {}
_registry_lock = threading.Lock()


def register_algorithm(algorithm: SignatureAlgorithm) -> None:
    """
    Register a signature algorithm under its wire name.

    Args:
        algorithm: Strategy instance to register

    Raises:
        ValueError: If the algorithm has no name
    """
    if not algorithm.name:
        raise ValueError("Signature algorithm must define a name")
    with _registry_lock:
        _registry[algorithm.name] = algorithm


def get_algorithm(name: str) -> SignatureAlgorithm:
    """
    Look up a registered signature algorithm.

    Raises:
        SignatureError: If no algorithm is registered under ``name``
    """
    with _registry_lock:
        algorithm = _registry.get(name)
    if algorithm is None:
        raise SignatureError(
            f"Unsupported signature method: {name}",
            details={'signature_method': name, 'supported': available_algorithms()},
        )
    return algorithm


def available_algorithms() -> List[str]:
    """Names of all registered algorithms."""
    with _registry_lock:
        return sorted(_registry)


register_algorithm(HmacSha256())

DEFAULT_ALGORITHM = SignatureMethod.HMAC_SHA256.value
