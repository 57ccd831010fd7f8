"""KeyPair — key generation and signing for token issuers.

The validation core never signs. A :class:`KeyPair` plays the external
signer: hand :meth:`KeyPair.sign` to
:meth:`~ucan_tokens.token.builder.UCANBuilder.build_and_sign`, or sign
``builder.signing_input()`` yourself.

Example
-------
::

    issuer = KeyPair.generate(Algorithm.EDDSA)
    encoded = (
        UCANBuilder(algorithm=issuer.algorithm)
        .issuer(issuer.did)
        .audience(audience_did)
        .add_capability(Capability("storage://example.com/data", "read"))
        .build_and_sign(issuer.sign)
    )
"""
from __future__ import annotations

from typing import Any

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from ucan_tokens.crypto.verifier import ES256_COORDINATE_SIZE
from ucan_tokens.did.did_key import public_key_to_did
from ucan_tokens.token.types import Algorithm

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


class KeyPair:
    """A private key together with the algorithm it signs for.

    Parameters
    ----------
    algorithm:
        The token algorithm this key signs with.
    private_key:
        A ``cryptography`` private key matching *algorithm*.

    Raises
    ------
    TypeError
        If the private key type does not match *algorithm*.
    """

    def __init__(self, algorithm: Algorithm, private_key: Any) -> None:
        algorithm = Algorithm(algorithm)
        if not _key_matches(algorithm, private_key):
            raise TypeError(
                f"{type(private_key).__name__} cannot sign {algorithm.value} tokens"
            )
        self._algorithm = algorithm
        self._private_key = private_key
        self._did: str | None = None

    @classmethod
    def generate(cls, algorithm: Algorithm = Algorithm.EDDSA) -> "KeyPair":
        """Generate a fresh key pair for *algorithm*."""
        algorithm = Algorithm(algorithm)
        if algorithm is Algorithm.EDDSA:
            private_key: Any = ed25519.Ed25519PrivateKey.generate()
        elif algorithm is Algorithm.ES256:
            private_key = ec.generate_private_key(ec.SECP256R1())
        else:
            private_key = rsa.generate_private_key(
                public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_SIZE
            )
        return cls(algorithm, private_key)

    @property
    def algorithm(self) -> Algorithm:
        return self._algorithm

    @property
    def public_key(self) -> Any:
        return self._private_key.public_key()

    @property
    def did(self) -> str:
        """The ``did:key`` identifier of the public key."""
        if self._did is None:
            self._did = public_key_to_did(self.public_key)
        return self._did

    def sign(self, data: bytes) -> bytes:
        """Sign *data*; ES256 signatures are returned as raw ``r || s``."""
        if self._algorithm is Algorithm.EDDSA:
            return self._private_key.sign(data)
        if self._algorithm is Algorithm.ES256:
            der = self._private_key.sign(data, ec.ECDSA(hashes.SHA256()))
            r, s = decode_dss_signature(der)
            return r.to_bytes(ES256_COORDINATE_SIZE, "big") + s.to_bytes(
                ES256_COORDINATE_SIZE, "big"
            )
        return self._private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())

    def __repr__(self) -> str:
        return f"KeyPair(algorithm={self._algorithm.value!r}, did={self.did!r})"


def _key_matches(algorithm: Algorithm, private_key: Any) -> bool:
    if algorithm is Algorithm.EDDSA:
        return isinstance(private_key, ed25519.Ed25519PrivateKey)
    if algorithm is Algorithm.ES256:
        return isinstance(private_key, ec.EllipticCurvePrivateKey) and isinstance(
            private_key.curve, ec.SECP256R1
        )
    return isinstance(private_key, rsa.RSAPrivateKey)


__all__ = ["KeyPair"]
