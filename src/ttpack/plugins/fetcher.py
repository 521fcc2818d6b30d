"""Download plugin archives over HTTP(S)."""

import http.client
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import BinaryIO

from ttpack import __version__
from ttpack.errors import NetworkError

logger = logging.getLogger(__name__)

USER_AGENT = f"ttpack/{__version__}"
CHUNK_SIZE = 64 * 1024


def fetch_archive(url: str, dest: Path, timeout: float = 60.0) -> None:
    """Stream ``url`` into ``dest``.

    ``dest`` is only created once the server has answered with a 2xx
    status. An interrupted transfer may leave a partial file behind.

    Args:
        url: HTTP(S) URL of the archive.
        dest: File to create (overwritten if present).
        timeout: Socket timeout in seconds for connect and each read.

    Raises:
        NetworkError: On connection failure, timeout, or non-2xx status.
        OSError: If ``dest`` cannot be created or written.
    """
    logger.info(f"Downloading {url}")
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status = getattr(resp, "status", 200)
            if not 200 <= status < 300:
                raise NetworkError(f"GET {url} returned HTTP {status}")
            with open(dest, "wb") as out:
                size = _copy_body(url, resp, out)
    except urllib.error.HTTPError as e:
        raise NetworkError(f"GET {url} returned HTTP {e.code}") from e
    except urllib.error.URLError as e:
        raise NetworkError(f"GET {url} failed: {e.reason}") from e
    except (TimeoutError, http.client.HTTPException) as e:
        raise NetworkError(f"GET {url} failed: {e}") from e

    logger.debug(f"Saved {size} bytes to {dest}")


def _copy_body(url: str, resp: BinaryIO, out: BinaryIO) -> int:
    """Copy the response body in chunks, keeping read and write errors apart."""
    total = 0
    while True:
        try:
            chunk = resp.read(CHUNK_SIZE)
        except (OSError, http.client.HTTPException) as e:
            raise NetworkError(f"Transfer from {url} interrupted: {e}") from e
        if not chunk:
            return total
        out.write(chunk)
        total += len(chunk)
