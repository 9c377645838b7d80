"""Logo image loading with graceful failure."""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from reportlab.lib.utils import ImageReader

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogoImage:
    """A decoded raster asset: the raw bytes plus pixel dimensions."""
    name: str
    data: bytes
    width: int
    height: int


def decode_logo(name: str, data: bytes) -> Optional[LogoImage]:
    """Validate raster bytes, returning None if they cannot be decoded."""
    if not data:
        log.warning("Logo asset %s is empty", name)
        return None
    try:
        reader = ImageReader(io.BytesIO(data))
        width, height = reader.getSize()
        # Header parsing alone misses truncated pixel data
        reader.getRGBData()
    except Exception as exc:  # PIL and ReportLab raise a variety of decode errors
        log.warning("Logo asset %s could not be decoded: %s", name, exc)
        return None
    return LogoImage(name=name, data=data, width=int(width), height=int(height))


class AssetProvider:
    """Looks up logo images by asset name."""

    def load(self, name: str) -> Optional[LogoImage]:
        raise NotImplementedError


class FileAssetProvider(AssetProvider):
    """Reads logo files from a directory."""

    def __init__(self, directory: Optional[Path]):
        self.directory = Path(directory) if directory is not None else None

    def load(self, name: str) -> Optional[LogoImage]:
        if self.directory is None:
            log.warning("No asset directory configured; cannot load %s", name)
            return None
        path = self.directory / name
        try:
            data = path.read_bytes()
        except OSError as exc:
            log.warning("Logo asset %s unavailable: %s", path, exc)
            return None
        return decode_logo(name, data)


class InMemoryAssetProvider(AssetProvider):
    """Serves logo bytes held in memory."""

    def __init__(self, assets: Optional[Dict[str, bytes]] = None):
        self.assets = dict(assets or {})

    def load(self, name: str) -> Optional[LogoImage]:
        data = self.assets.get(name)
        if data is None:
            log.warning("Logo asset %s not found", name)
            return None
        return decode_logo(name, data)
