"""Signing key pair for session tokens.

A :class:`KeyPair` is created once at startup, either freshly generated or
loaded from PEM files, and handed to the token codec.  It is immutable and
is never rotated while the process runs.  Failure to produce a key pair is
the one fatal startup condition and raises :class:`KeyGenerationError`.

Example
-------
::

    pair = KeyPair.generate()            # RSA-2048, RS256
    pair.write_pem(Path("keys"))         # keys/private.pem, keys/public.pem
    again = KeyPair.load(Path("keys/private.pem"), Path("keys/public.pem"))
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from filegate.errors import KeyGenerationError

logger = logging.getLogger(__name__)

PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]
PublicKey = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey]

RSA_ALGORITHMS: frozenset[str] = frozenset(["RS256", "RS384", "RS512"])
EC_ALGORITHMS: frozenset[str] = frozenset(["ES256"])
SUPPORTED_ALGORITHMS: frozenset[str] = RSA_ALGORITHMS | EC_ALGORITHMS

DEFAULT_ALGORITHM = "RS256"
DEFAULT_RSA_KEY_SIZE = 2048

PRIVATE_KEY_FILENAME = "private.pem"
PUBLIC_KEY_FILENAME = "public.pem"


def _check_algorithm(algorithm: str) -> str:
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise KeyGenerationError(
            f"Unsupported signing algorithm {algorithm!r}. "
            f"Supported: {sorted(SUPPORTED_ALGORITHMS)}."
        )
    return algorithm


def _check_key_kind(algorithm: str, key: object) -> None:
    if algorithm in RSA_ALGORITHMS and not isinstance(
        key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)
    ):
        raise KeyGenerationError(f"{algorithm} requires an RSA key.")
    if algorithm in EC_ALGORITHMS and not isinstance(
        key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)
    ):
        raise KeyGenerationError(f"{algorithm} requires an elliptic-curve key.")


@dataclass(frozen=True)
class KeyPair:
    """Asymmetric key pair plus the JWS algorithm it signs with.

    Attributes
    ----------
    algorithm:
        JWS algorithm name, e.g. ``"RS256"`` or ``"ES256"``.
    public_key:
        Key used for verification.
    private_key:
        Key used for signing.  ``None`` for a verify-only pair.
    """

    algorithm: str
    public_key: PublicKey
    private_key: PrivateKey | None = None

    def __post_init__(self) -> None:
        _check_algorithm(self.algorithm)
        _check_key_kind(self.algorithm, self.public_key)
        if self.private_key is not None:
            _check_key_kind(self.algorithm, self.private_key)

    @property
    def can_sign(self) -> bool:
        return self.private_key is not None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def generate(
        cls,
        algorithm: str = DEFAULT_ALGORITHM,
        key_size: int = DEFAULT_RSA_KEY_SIZE,
    ) -> KeyPair:
        """Generate a fresh key pair for ``algorithm``.

        Raises
        ------
        KeyGenerationError
            If the algorithm is unsupported or the backend refuses the
            parameters.
        """
        _check_algorithm(algorithm)
        try:
            private_key: PrivateKey
            if algorithm in RSA_ALGORITHMS:
                private_key = rsa.generate_private_key(
                    public_exponent=65537, key_size=key_size
                )
            else:
                private_key = ec.generate_private_key(ec.SECP256R1())
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise KeyGenerationError(f"Failed to generate {algorithm} key pair: {exc}") from exc

        logger.info("Generated %s signing key pair", algorithm)
        return cls(
            algorithm=algorithm,
            public_key=private_key.public_key(),
            private_key=private_key,
        )

    @classmethod
    def from_pem(
        cls,
        public_pem: bytes,
        private_pem: bytes | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
        password: bytes | None = None,
    ) -> KeyPair:
        """Build a key pair from PEM-encoded key material.

        Raises
        ------
        KeyGenerationError
            If the PEM data cannot be parsed or does not fit ``algorithm``.
        """
        _check_algorithm(algorithm)
        try:
            public_key = serialization.load_pem_public_key(public_pem)
            private_key = (
                serialization.load_pem_private_key(private_pem, password=password)
                if private_pem is not None
                else None
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyGenerationError(f"Failed to load PEM key material: {exc}") from exc
        return cls(
            algorithm=algorithm,
            public_key=public_key,  # type: ignore[arg-type]
            private_key=private_key,  # type: ignore[arg-type]
        )

    @classmethod
    def load(
        cls,
        private_key_path: Path | None,
        public_key_path: Path,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> KeyPair:
        """Load a key pair from PEM files on disk.

        ``private_key_path`` may be ``None`` for a verify-only pair.
        """
        try:
            public_pem = Path(public_key_path).read_bytes()
            private_pem = (
                Path(private_key_path).read_bytes() if private_key_path is not None else None
            )
        except OSError as exc:
            raise KeyGenerationError(f"Failed to read key file: {exc}") from exc
        pair = cls.from_pem(public_pem, private_pem, algorithm=algorithm)
        logger.info("Loaded %s signing key pair from %s", algorithm, public_key_path)
        return pair

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def public_pem(self) -> bytes:
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def private_pem(self) -> bytes:
        """Return the unencrypted PKCS#8 PEM of the private key."""
        if self.private_key is None:
            raise KeyGenerationError("This key pair has no private key.")
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def write_pem(self, directory: Path) -> tuple[Path, Path]:
        """Write ``private.pem`` and ``public.pem`` into ``directory``.

        Returns
        -------
        tuple[Path, Path]
            The private and public key paths.
        """
        directory.mkdir(parents=True, exist_ok=True)
        private_path = directory / PRIVATE_KEY_FILENAME
        public_path = directory / PUBLIC_KEY_FILENAME
        private_path.write_bytes(self.private_pem())
        private_path.chmod(0o600)
        public_path.write_bytes(self.public_pem())
        return private_path, public_path

    def __repr__(self) -> str:
        return f"KeyPair(algorithm={self.algorithm!r}, can_sign={self.can_sign})"
