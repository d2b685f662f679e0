import logging
import pathlib
from collections.abc import Iterable

import chardet

_log = logging.getLogger(__name__)

FALLBACK_ENCODING = "utf-8"


def detect_encoding(lines: Iterable[bytes]) -> str | None:
    """Determine the encoding of a binary file.

    Args:
        lines: The lines of the file.

    Returns:
        The encoding if detected successfully, otherwise None.
    """

    detector = chardet.UniversalDetector()

    for line in lines:
        if not detector.done:
            detector.feed(line)
        else:
            break

    result = detector.close()

    if encoding := result["encoding"]:
        encoding = encoding.lower()

        if encoding == "ascii":
            # ASCII is a subset of UTF-8, and non-ASCII lines may follow those the detector saw.
            encoding = FALLBACK_ENCODING

        return encoding

    return None


def file_encoding(path: pathlib.Path, encoding: str | None) -> str:
    """Return the encoding to read a file with.

    Args:
        path: The file.
        encoding: The encoding given by the user. If None, it is detected.

    Returns:
        The encoding.
    """

    if encoding is not None:
        return encoding

    with path.open("rb") as f:
        detected = detect_encoding(f)

    if detected is None:
        _log.warning("failed to detect encoding for %s, assuming %s", path, FALLBACK_ENCODING)
        return FALLBACK_ENCODING

    _log.info("detected encoding %s for %s", detected, path)
    return detected
