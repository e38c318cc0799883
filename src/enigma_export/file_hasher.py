"""
FileHasher module for checksumming downloaded artifacts
"""
import hashlib
from pathlib import Path
from typing import Union


class FileHasher:
    """Utility class for generating consistent file hashes for deduplication"""

    CHUNK_SIZE = 1024 * 1024

    @staticmethod
    def generate_file_hash(file_path: Union[str, Path]) -> str:
        """Generate SHA-256 hash of a file's bytes, read in chunks"""
        digest = hashlib.sha256()
        with open(file_path, 'rb') as f:
            for chunk in iter(lambda: f.read(FileHasher.CHUNK_SIZE), b''):
                digest.update(chunk)
        return digest.hexdigest()

