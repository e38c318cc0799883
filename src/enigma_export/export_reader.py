"""
ExportReader module for loading downloaded export artifacts with DuckDB
"""

import logging
import duckdb
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .export_handle import ExportHandle, as_export_handle


GZIP_MAGIC = b'\x1f\x8b'


class ExportReadError(Exception):
    """Raised when an artifact cannot be decoded as a delimited file"""
    pass


@dataclass
class ExportTable:
    """Column names and rows decoded from an export artifact"""
    columns: List[str]
    rows: List[Tuple[Any, ...]] = field(default_factory=list)
    dataset: Optional[str] = None

    def __len__(self) -> int:
        return len(self.rows)

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]


class ExportReader:
    """Decodes gzip-compressed, comma-delimited export artifacts"""

    def __init__(self, connection: Optional[duckdb.DuckDBPyConnection] = None):
        self._connection = connection
        self.logger = logging.getLogger(__name__)

    def read(self, source: Union[ExportHandle, str, Path], all_varchar: bool = False) -> ExportTable:
        """
        Read an export artifact into memory

        Args:
            source: ExportHandle from a fetch, or a path to a downloaded file
            all_varchar: Keep every column as text instead of inferring types

        Returns:
            ExportTable with the header row as column names

        Raises:
            FileNotFoundError: If the artifact does not exist
            ExportReadError: If DuckDB cannot parse the file
        """
        handle = as_export_handle(source)
        path = handle.read_path
        if not path.exists():
            raise FileNotFoundError(f"Export artifact not found: {path}")

        connection = self._connection or duckdb.connect()
        try:
            relation = connection.read_csv(
                str(path),
                header=True,
                sep=',',
                compression=self._compression(path),
                all_varchar=all_varchar
            )
            columns = list(relation.columns)
            rows = relation.fetchall()
        except duckdb.Error as e:
            raise ExportReadError(f"Failed to read export artifact {path}: {e}") from e
        finally:
            if self._connection is None:
                connection.close()

        self.logger.info(f"Read {len(rows)} rows x {len(columns)} columns from {path}")
        return ExportTable(columns=columns, rows=rows, dataset=handle.dataset)

    @staticmethod
    def _compression(path: Path) -> str:
        with open(path, 'rb') as f:
            return 'gzip' if f.read(2) == GZIP_MAGIC else 'none'
