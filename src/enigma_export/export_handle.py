"""
ExportHandle module for the durable result of a completed export
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class ExportHandle:
    """
    Path of a downloaded export artifact plus the dataset that produced it

    A dataset of None marks a handle built from a bare path, where the
    originating dataset is unknown.
    """
    path: str
    dataset: Optional[str] = None
    content_hash: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike]) -> 'ExportHandle':
        return cls(path=os.fspath(path))

    @property
    def read_path(self) -> Path:
        """Path a reader should load the artifact from"""
        return Path(self.path)

    @property
    def dataset_known(self) -> bool:
        return self.dataset is not None

    def __fspath__(self) -> str:
        return self.path

    def summary(self) -> str:
        lines = [
            "<<enigma download>>",
            f"  Dataset: {self.dataset if self.dataset_known else 'unknown'}",
            f"  Path: {self.path}",
        ]
        if self.content_hash:
            lines.append(f"  SHA-256: {self.content_hash}")
        lines.append("  see ExportReader.read()")
        return '\n'.join(lines)

    def __str__(self) -> str:
        return self.summary()


def as_export_handle(value: Union[ExportHandle, str, os.PathLike]) -> ExportHandle:
    """
    Coerce a handle or a bare path into an ExportHandle

    Raises:
        TypeError: If value is neither a handle nor a path
    """
    if isinstance(value, ExportHandle):
        return value
    if isinstance(value, (str, os.PathLike)):
        return ExportHandle.from_path(value)
    raise TypeError(f"Expected an ExportHandle or a path, got {type(value).__name__}")
