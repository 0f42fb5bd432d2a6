"""Prebuilt artifact download with SSL certificate handling.

Downloads go to a temporary sibling of the destination and are moved into
place only after the transfer completes, so a failed transfer never leaves
a partial artifact at the canonical path.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import ssl
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import certifi

from libprovision import __version__ as LIBPROVISION_VERSION
from libprovision.core.errors import FetchError
from libprovision.core.logging import get_logger

LOGGER = get_logger(__name__)

# Base URL of release assets; <version>/<triple><ext> is appended
DEFAULT_RELEASE_BASE_URL = "https://github.com/libprovision/native-core/releases/download"

_CHUNK_SIZE = 64 * 1024

# Mode of a freshly created regular file before the umask is applied
_NEW_FILE_MODE = 0o666


def _read_umask() -> int:
    # the umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Read once at import, never from executor threads
_UMASK = _read_umask()


def get_ssl_context() -> ssl.SSLContext:
    """Get an SSL context that uses certifi's CA bundle.

    Standalone interpreters on macOS cannot always reach the system
    certificate store.
    """
    return ssl.create_default_context(cafile=certifi.where())


def construct_download_url(
    version: str,
    triple: str,
    extension: str,
    base_url: str = DEFAULT_RELEASE_BASE_URL,
) -> str:
    """Construct the download URL for a prebuilt artifact.

    Args:
        version: Release tag to download.
        triple: Target triple of the running platform.
        extension: Shared library extension, including the dot.
        base_url: Release download base URL.

    Returns:
        ``<base_url>/<version>/<triple><extension>``
    """
    return f"{base_url.rstrip('/')}/{version}/{triple}{extension}"


def download_file(url: str, dest_path: Path, timeout: Optional[float] = None) -> None:
    """Download ``url`` to ``dest_path``, creating missing parent directories.

    Args:
        url: HTTPS URL to download from.
        dest_path: Final artifact path.
        timeout: Socket timeout in seconds; None uses the library default.

    Raises:
        FetchError: If the URL is not HTTPS or the transfer fails.
    """
    if not url.startswith("https://"):
        raise FetchError(f"Only HTTPS URLs are supported: {url}")

    request = Request(url, headers={"User-Agent": f"libprovision/{LIBPROVISION_VERSION}"})

    try:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{dest_path.name}.", suffix=".part", dir=dest_path.parent
        )
    except OSError as e:
        raise FetchError(f"Failed to download pre-built binaries: {e}") from e

    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "wb") as out:
            kwargs: Dict[str, Any] = {"context": get_ssl_context()}
            if timeout is not None:
                kwargs["timeout"] = timeout
            with urlopen(request, **kwargs) as response:  # nosec B310
                total_size = response.getheader("Content-Length")
                if total_size:
                    LOGGER.info(f"Artifact size: {int(total_size) / 1024 / 1024:.1f} MB")
                shutil.copyfileobj(response, out, _CHUNK_SIZE)
            out.flush()
            os.fsync(out.fileno())
        # mkstemp files are 0600; match a plain file created under the umask
        os.chmod(tmp_path, _NEW_FILE_MODE & ~_UMASK)
        os.replace(tmp_path, dest_path)
    except HTTPError as e:
        raise FetchError(
            f"Failed to download pre-built binaries: HTTP {e.code} - {e.reason} ({url})"
        ) from e
    except URLError as e:
        raise FetchError(f"Failed to download pre-built binaries: {e.reason} ({url})") from e
    except OSError as e:
        raise FetchError(f"Failed to download pre-built binaries: {e}") from e
    finally:
        tmp_path.unlink(missing_ok=True)


async def download_artifact(url: str, dest_path: Path) -> None:
    """Download the artifact without blocking the event loop."""
    LOGGER.info(f"Downloading pre-built binary from {url}")
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, download_file, url, dest_path)
    LOGGER.info(f"Pre-built binary installed to {dest_path}")
