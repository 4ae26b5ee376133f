"""
Checksum verification for downloaded release assets.

This module provides:
- The Checksum value type (algorithm tag + expected hex digest)
- Checksum listing parsing (SHA256SUMS / checksums.txt format)
- Algorithm detection from the checksum file name or digest length
- Digest computation and timing-attack resistant comparison
"""

import hashlib
import logging
import re
import secrets
from dataclasses import dataclass
from typing import Dict, Optional

from .exceptions import ChecksumMismatchError, ChecksumNotFoundError

logger = logging.getLogger(__name__)


SUPPORTED_ALGORITHMS = ("sha256", "sha512", "sha1", "md5")

# Hex digest length -> algorithm
_DIGEST_LENGTHS = {64: "sha256", 128: "sha512", 40: "sha1", 32: "md5"}

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


@dataclass(frozen=True)
class Checksum:
    """
    Expected digest of one release asset.

    Attributes:
        algorithm: Hash algorithm ('sha256', 'sha512', 'sha1', 'md5')
        digest: Expected digest, lowercase hex
        filename: Asset filename the digest belongs to
    """

    algorithm: str
    digest: str
    filename: str

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.digest}"


def algorithm_from_filename(name: str) -> Optional[str]:
    """
    Guess the hash algorithm from a checksum file name.

    Example:
        >>> algorithm_from_filename('SHA512SUMS')
        'sha512'
        >>> algorithm_from_filename('tool-linux-amd64.sha256')
        'sha256'
        >>> algorithm_from_filename('checksums.txt') is None
        True
        >>> algorithm_from_filename('sha1sum-rs_checksums.txt') is None
        True
    """
    lowered = name.lower()
    if lowered.endswith(".txt"):
        lowered = lowered[:-4]
    # Only a suffix or a *SUMS listing name declares the algorithm
    for algorithm in SUPPORTED_ALGORITHMS:
        if lowered.endswith((f".{algorithm}", f".{algorithm}sum", f"{algorithm}sums")):
            return algorithm
    return None


def infer_algorithm(digest: str) -> str:
    """
    Infer the hash algorithm from the length of a hex digest.

    Raises:
        ValueError: If the digest is not hex or has no known length
    """
    if not _HEX_RE.match(digest):
        raise ValueError(f"Digest is not hexadecimal: {digest!r}")
    try:
        return _DIGEST_LENGTHS[len(digest)]
    except KeyError:
        raise ValueError(f"Cannot infer algorithm for digest of length {len(digest)}")


def parse_checksums(
    text: str,
    source_name: str = "",
    default_filename: Optional[str] = None,
) -> Dict[str, Checksum]:
    """
    Parse a checksum listing.

    Supports formats:
    - digest  filename
    - digest *filename  (binary mode marker)
    - digest            (single-asset companion file, needs default_filename)

    Blank lines and '#' comments are skipped. Lines whose filename tries to
    escape the release (absolute paths, '..') are skipped with a warning, as
    are digests whose length contradicts the algorithm the file name declares.

    Args:
        text: Content of the checksum file
        source_name: Name of the checksum file, used to detect the algorithm
        default_filename: Filename to associate with a bare digest line

    Returns:
        Dict of filename -> Checksum

    Raises:
        ChecksumNotFoundError: If one filename has two different digests
    """
    declared = algorithm_from_filename(source_name) if source_name else None
    checksums: Dict[str, Checksum] = {}

    for line_num, line in enumerate(text.splitlines(), 1):
        line = line.strip()

        if not line or line.startswith("#"):
            continue

        parts = line.split(maxsplit=1)
        digest = parts[0]
        if len(parts) == 2:
            filename = parts[1].strip()
            if filename.startswith("*"):
                filename = filename[1:].strip()
        elif default_filename:
            filename = default_filename
        else:
            logger.warning(f"Skipping line {line_num} in {source_name}: no filename")
            continue

        # Some tools emit "./name"
        if filename.startswith("./"):
            filename = filename[2:]

        is_suspicious = (
            ".." in filename
            or filename.startswith("/")
            or filename.startswith("\\")
            or (len(filename) > 1 and filename[1] == ":")
        )
        if is_suspicious:
            logger.warning(
                f"Skipping suspicious filename at line {line_num}: {filename}"
            )
            continue

        try:
            algorithm = infer_algorithm(digest)
        except ValueError as e:
            logger.warning(f"Skipping line {line_num} in {source_name}: {e}")
            continue

        if declared and declared != algorithm:
            logger.warning(
                f"Skipping line {line_num} in {source_name}: declares {declared} "
                f"but holds a {algorithm}-length digest"
            )
            continue

        checksum = Checksum(
            algorithm=algorithm, digest=digest.lower(), filename=filename
        )
        previous = checksums.get(filename)
        if previous is not None and previous != checksum:
            raise ChecksumNotFoundError(
                filename, f"conflicting entries in {source_name or 'checksum file'}"
            )
        checksums[filename] = checksum

    return checksums


def find_checksum(
    text: str, filename: str, source_name: str = "", companion: bool = False
) -> Checksum:
    """
    Locate the checksum entry for one filename in a checksum listing.

    Args:
        text: Content of the checksum file
        filename: Asset filename to look up
        source_name: Name of the checksum file
        companion: True for a per-asset file (e.g. tool.sha256), whose bare
            digest lines belong to filename

    Raises:
        ChecksumNotFoundError: If the listing has no usable entry for filename
    """
    entries = parse_checksums(
        text, source_name, default_filename=filename if companion else None
    )
    try:
        return entries[filename]
    except KeyError:
        raise ChecksumNotFoundError(
            filename, f"no entry in {source_name or 'checksum file'}"
        )


def compute_digest(data: bytes, algorithm: str = "sha256") -> str:
    """
    Compute the hex digest of a byte string.

    Raises:
        ValueError: If algorithm is not supported
    """
    algorithm = algorithm.lower()
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")
    if algorithm in ("md5", "sha1"):
        logger.warning(
            f"{algorithm.upper()} is cryptographically weak; "
            "publish SHA256 or SHA512 checksums instead"
        )
    return hashlib.new(algorithm, data).hexdigest()


def verify_bytes(data: bytes, checksum: Checksum) -> str:
    """
    Verify data against a checksum using constant-time comparison.

    Returns:
        The computed digest

    Raises:
        ChecksumMismatchError: If the digest differs
    """
    actual = compute_digest(data, checksum.algorithm)
    if not secrets.compare_digest(actual.encode("ascii"), checksum.digest.encode("ascii")):
        raise ChecksumMismatchError(
            checksum.filename, checksum.digest, actual, checksum.algorithm
        )
    logger.info(f"Checksum verified for {checksum.filename} ({checksum.algorithm})")
    return actual


__all__ = [
    "Checksum",
    "SUPPORTED_ALGORITHMS",
    "algorithm_from_filename",
    "infer_algorithm",
    "parse_checksums",
    "find_checksum",
    "compute_digest",
    "verify_bytes",
]
