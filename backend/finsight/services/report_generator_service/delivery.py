"""
Delivery — hands a finished export to the user.

Native delivery writes into the documents directory. When that is
unavailable or fails, the export falls back to a download: either a
caller-supplied download hook (e.g. a web response) or the downloads
directory.

Part of the report_generator_service package.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from finsight.config import settings
from finsight.exceptions import ExportFailedError

logger = logging.getLogger(__name__)

DownloadHook = Callable[[str, bytes], None]


@dataclass
class DeliveryResult:
    filename: str
    method: str  # "native" or "download"
    path: Optional[Path] = None


def write_atomic(path: Path, data: bytes) -> Path:
    """Write via a temp file and rename, so a failed write leaves no partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_bytes(data)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    return path


def deliver_export(
    filename: str,
    content: Union[bytes, str],
    native: Optional[bool] = None,
    documents_dir: Optional[Path] = None,
    downloads_dir: Optional[Path] = None,
    download: Optional[DownloadHook] = None,
) -> DeliveryResult:
    """
    Deliver export content, preferring the native documents directory.

    A native write failure is logged and degrades to the download path;
    only a failing download raises ExportFailedError.
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    use_native = settings.native_filesystem if native is None else native

    if use_native:
        target = Path(documents_dir or settings.documents_dir) / filename
        try:
            write_atomic(target, data)
            logger.info(f"Export written to {target}")
            return DeliveryResult(filename=filename, method="native", path=target)
        except OSError as e:
            logger.warning(f"Native write of {filename} failed, falling back to download: {e}")

    try:
        if download is not None:
            download(filename, data)
            logger.info(f"Export {filename} handed to download hook")
            return DeliveryResult(filename=filename, method="download")
        target = Path(downloads_dir or settings.downloads_dir) / filename
        write_atomic(target, data)
        logger.info(f"Export downloaded to {target}")
        return DeliveryResult(filename=filename, method="download", path=target)
    except Exception as e:
        logger.error(f"Delivery of {filename} failed: {e}", exc_info=True)
        raise ExportFailedError(f"Could not deliver {filename}: {e}", cause=e) from e
