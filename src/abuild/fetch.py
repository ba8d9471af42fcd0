"""Content retrieval and archive extraction for external dependencies.

fetch() downloads a URL into a private temporary file; extract() unpacks a zip
archive into a private temporary directory. Neither retries: a failure aborts
the dependency resolution that asked for it.
"""

import logging
import shutil
import zipfile
from pathlib import Path

import requests

from .errors import AbuildError
from .files import temp_dir, temp_file

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192
_TIMEOUT = 30


class ExtractionError(AbuildError):
    """Raised when an archive entry cannot be extracted safely."""

    pass


def fetch(url: str) -> Path:
    """Download a URL into a fresh temporary file.

    Args:
        url: Address of the artifact

    Returns:
        Path to the downloaded file

    Raises:
        requests.HTTPError: On an error status
        requests.RequestException: On transport failure
        OSError: If the temporary file cannot be written
    """
    temp = temp_file("dep")
    logger.debug("Fetching %s -> %s", url, temp)
    try:
        response = requests.get(url, stream=True, timeout=_TIMEOUT)
        response.raise_for_status()

        downloaded = 0
        with open(temp, "wb") as f:
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
                    downloaded += len(chunk)
    except BaseException:
        temp.unlink(missing_ok=True)
        raise

    logger.debug("Fetched %d bytes from %s", downloaded, url)
    return temp


def extract(archive: Path) -> Path:
    """Extract a zip archive into a fresh temporary directory.

    Args:
        archive: Path to the zip file

    Returns:
        Path to the directory holding the archive contents

    Raises:
        zipfile.BadZipFile: If the archive is corrupt
        ExtractionError: If an entry would be written outside the directory
    """
    dest = temp_dir("dep")
    root = dest.resolve()
    try:
        with zipfile.ZipFile(archive, "r") as zf:
            members = zf.namelist()
            for member in members:
                target = (dest / member).resolve()
                if target != root and root not in target.parents:
                    raise ExtractionError(f"Archive entry escapes extraction directory: {member}")
                zf.extract(member, dest)
    except BaseException:
        shutil.rmtree(dest, ignore_errors=True)
        raise
    logger.debug("Extracted %d entries from %s -> %s", len(members), archive, dest)
    return dest
