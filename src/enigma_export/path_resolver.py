"""
PathResolver module for deriving default artifact destinations
"""

from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse


class PathResolver:
    """Derives a destination path for an export from its download URL"""

    def __init__(self, base_directory: Optional[Union[str, Path]] = None):
        # Home directory is only read when no base directory is injected
        self.base_directory = Path(base_directory).expanduser() if base_directory else Path.home()

    def resolve(self, export_url: str) -> Path:
        """
        Map an export URL onto a path under the base directory

        The URL's path component is kept as a relative path, so
        'https://host/exports/abc.csv.gz' becomes '<base>/exports/abc.csv.gz'.

        Raises:
            ValueError: If the URL has no usable path component
        """
        url_path = urlparse(export_url).path.lstrip('/')
        if not url_path or url_path.endswith('/'):
            raise ValueError(f"Cannot derive a file name from export URL: {export_url}")

        relative = Path(url_path)
        if '..' in relative.parts:
            raise ValueError(f"Export URL path escapes the download directory: {export_url}")
        return self.base_directory / relative
