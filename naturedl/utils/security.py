from pathlib import Path
import re
from typing import List
import structlog

logger = structlog.get_logger()

# Characters that are illegal in file names on at least one major platform
_ILLEGAL_RE = re.compile(r'[/?<>\\:*|"]')
_CONTROL_RE = re.compile(r"[\x00-\x1f\x80-\x9f]")
_RESERVED_RE = re.compile(r"^\.+$")
_WINDOWS_RESERVED_RE = re.compile(
    r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE
)
_WINDOWS_TRAILING_RE = re.compile(r"[. ]+$")
_TRAILING_TRIM_RE = re.compile(r"[.\s]+$")

MAX_FILENAME_BYTES = 255


class SecurityError(Exception):
    """Base class for security-related errors."""

    pass


def sanitize_filename(
    title: str, replacement: str = "", max_bytes: int = MAX_FILENAME_BYTES
) -> str:
    """Turn an article title into a string usable as a file name

    Removes characters that are illegal on common filesystems, control
    characters, reserved names and trailing dots or spaces, then
    truncates to max_bytes of UTF-8 and trims surrounding whitespace.
    Trailing dots and whitespace exposed by the cut are removed as well.

    Args:
        title: Raw title scraped from the remote page
        replacement: String substituted for each removed character
        max_bytes: Upper bound on the UTF-8 length of the result

    Returns:
        Safe file name component (may be empty)
    """
    name = _ILLEGAL_RE.sub(replacement, title)
    name = _CONTROL_RE.sub(replacement, name)
    name = _RESERVED_RE.sub(replacement, name)
    name = _WINDOWS_RESERVED_RE.sub(replacement, name)
    name = _WINDOWS_TRAILING_RE.sub(replacement, name)

    encoded = name.encode("utf-8")
    if len(encoded) > max_bytes:
        name = encoded[:max_bytes].decode("utf-8", errors="ignore")

    return _TRAILING_TRIM_RE.sub("", name).strip()


class PathSanitizer:
    """Secure path validation for the output tree"""

    def __init__(self, allowed_bases: List[Path]):
        """Initialize with allowed base directories"""
        self.allowed_bases = [p.resolve() for p in allowed_bases]

    def safe_path(self, base_dir: Path, *components: str) -> Path:
        """Get safe path within base directory

        Prevents:
        - Directory traversal (../)
        - Absolute path injection

        Raises:
            SecurityError: If path is outside base_dir
        """
        base_dir = base_dir.resolve()

        is_allowed = False
        for allowed in self.allowed_bases:
            if base_dir == allowed or base_dir.is_relative_to(allowed):
                is_allowed = True
                break

        if not is_allowed:
            raise SecurityError(f"Base directory not in allowed list: {base_dir}")

        # Remove dangerous characters (null byte)
        safe_components = [c.replace("\0", "") for c in components]

        requested = base_dir.joinpath(*safe_components).resolve()

        try:
            requested.relative_to(base_dir)
        except ValueError:
            logger.warning(
                "path_traversal_blocked",
                base_dir=str(base_dir),
                components=list(components),
                resolved=str(requested),
            )
            raise SecurityError(
                f"Path traversal attempt detected: {'/'.join(components)}"
            )

        return requested
