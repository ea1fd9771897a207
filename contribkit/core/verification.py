"""
Checksum and signature verification.

This module provides:
- SHA-256/SHA-512/SHA-1/MD5 file hash computation and verification
- Parsing of index-style checksums ("SHA-256:<hex>")
- Detached GPG signature verification of package index files
"""

import hashlib
import logging
import secrets
import subprocess
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

SIGNATURE_SUFFIX = ".sig"


class HashFormatError(Exception):
    """Exception raised when hash format is invalid."""

    pass


def compute_file_hash(file_path: Path, algorithm: str = "sha256") -> str:
    """
    Compute cryptographic hash of file.

    Args:
        file_path: Path to file
        algorithm: Hash algorithm ('sha256', 'sha512', 'sha1', 'md5')

    Returns:
        Hex string of hash

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If algorithm is not supported
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    algorithm = algorithm.lower()

    if algorithm == "sha256":
        hasher = hashlib.sha256()
    elif algorithm == "sha512":
        hasher = hashlib.sha512()
    elif algorithm == "sha1":
        logger.warning(
            "SHA1 is cryptographically weak and should not be used for security. "
            "Use SHA256 or SHA512 instead."
        )
        hasher = hashlib.sha1()
    elif algorithm == "md5":
        logger.warning(
            "MD5 is cryptographically broken and should not be used for security. "
            "Use SHA256 or SHA512 instead."
        )
        hasher = hashlib.md5()
    else:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    with open(file_path, "rb") as f:
        while chunk := f.read(8192):
            hasher.update(chunk)

    return hasher.hexdigest()


def parse_checksum(checksum: str) -> Tuple[str, str]:
    """
    Split an index checksum into algorithm and hex digest.

    Accepts "SHA-256:abc...", "sha256:abc..." or a bare hex digest
    (assumed SHA-256).

    Example:
        >>> parse_checksum("SHA-256:9f86d0...")
        ('sha256', '9f86d0...')
    """
    if ":" in checksum:
        algo, hash_value = checksum.split(":", 1)
        algorithm = algo.lower().replace("-", "")
    else:
        algorithm, hash_value = "sha256", checksum

    hash_value = hash_value.strip().lower()
    if not _is_valid_hash_format(hash_value, algorithm):
        raise HashFormatError(f"Invalid hash format for {algorithm}: {hash_value}")

    return algorithm, hash_value


def verify_file_checksum(file_path: Path, checksum: str) -> bool:
    """
    Verify file against an index checksum using constant-time comparison.

    Raises:
        FileNotFoundError: If file doesn't exist
        HashFormatError: If checksum is malformed
    """
    algorithm, expected = parse_checksum(checksum)
    actual = compute_file_hash(file_path, algorithm)
    return secrets.compare_digest(actual.encode("utf-8"), expected.encode("utf-8"))


def _is_valid_hash_format(hash_str: str, algorithm: str) -> bool:
    """Validate hash string format (hex characters and expected length)."""
    if not hash_str:
        return False

    if not all(c in "0123456789abcdef" for c in hash_str):
        return False

    expected_lengths = {"md5": 32, "sha1": 40, "sha256": 64, "sha512": 128}
    expected_len = expected_lengths.get(algorithm)
    if expected_len is None or len(hash_str) != expected_len:
        return False

    return True


def signature_path_for(file_path: Path) -> Path:
    """Location of the detached signature that accompanies file_path."""
    return file_path.with_name(file_path.name + SIGNATURE_SUFFIX)


def verify_gpg_signature(
    file_path: Path, signature_path: Path, keyring_path: Optional[Path] = None
) -> Tuple[bool, str]:
    """
    Verify GPG signature of file.

    Args:
        file_path: File to verify
        signature_path: Detached signature file
        keyring_path: Optional path to GPG keyring

    Returns:
        (verified: bool, message: str)

    Note:
        Requires GPG to be installed. Returns (False, error) if GPG not available.
    """
    if not file_path.exists():
        return False, f"File not found: {file_path}"

    if not signature_path.exists():
        return False, f"Signature file not found: {signature_path}"

    cmd = ["gpg", "--batch", "--verify"]

    if keyring_path:
        if not keyring_path.exists():
            return False, f"Keyring not found: {keyring_path}"
        cmd.extend(["--no-default-keyring", "--keyring", str(keyring_path)])

    cmd.extend([str(signature_path), str(file_path)])

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except FileNotFoundError:
        return False, "GPG not installed. Install gpg to verify signatures."
    except subprocess.TimeoutExpired:
        return False, "GPG verification timeout"

    if result.returncode == 0:
        return True, "GPG signature verified successfully"
    return False, f"GPG verification failed: {result.stderr}"


class GPGSignatureVerifier:
    """
    Checks a file against its companion ``.sig`` file.

    Example:
        >>> verifier = GPGSignatureVerifier(Path("keys/package_index.gpg"))
        >>> verifier.is_signed(Path("package_index.json"))
        True
    """

    def __init__(self, keyring_path: Optional[Path] = None):
        self.keyring_path = keyring_path

    def is_signed(self, file_path: Path) -> bool:
        """Return True if file_path carries a valid detached signature."""
        verified, message = verify_gpg_signature(
            file_path, signature_path_for(file_path), self.keyring_path
        )
        if verified:
            logger.debug(f"{file_path.name}: {message}")
        else:
            logger.info(f"{file_path.name}: {message}")
        return verified


__all__ = [
    "HashFormatError",
    "compute_file_hash",
    "parse_checksum",
    "verify_file_checksum",
    "signature_path_for",
    "verify_gpg_signature",
    "GPGSignatureVerifier",
    "SIGNATURE_SUFFIX",
]
