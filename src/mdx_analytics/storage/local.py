"""Storage adapters for month documents."""
from pathlib import Path
from typing import List, Protocol, Union

from mdx_analytics.utils import get_logger, StorageError

logger = get_logger()

PathLike = Union[str, Path]


class StorageAdapter(Protocol):
    """
    Byte-level document storage used by the store facade.

    ``read_text`` and ``list_dir`` raise FileNotFoundError for missing
    paths; every other failure propagates unchanged.
    """

    def write_text(self, path: Path, content: str) -> None: ...

    def read_text(self, path: Path) -> str: ...

    def make_dirs(self, path: Path) -> None: ...

    def list_dir(self, path: Path) -> List[str]: ...


class LocalFileStorage:
    """
    Stores documents on the local filesystem.

    Missing paths raise FileNotFoundError (and NotADirectoryError when
    listing a file); other filesystem failures raise StorageError.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def write_text(self, path: PathLike, content: str) -> None:
        """Write full content, replacing any existing file."""
        try:
            Path(path).write_text(content, encoding=self.encoding)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        logger.debug(f"Wrote {len(content)} characters to {path}")

    def read_text(self, path: PathLike) -> str:
        """Read full content; FileNotFoundError when absent."""
        try:
            return Path(path).read_text(encoding=self.encoding)
        except FileNotFoundError:
            raise
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def make_dirs(self, path: PathLike) -> None:
        """Create a directory and its parents if missing."""
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create directory {path}: {e}") from e

    def list_dir(self, path: PathLike) -> List[str]:
        """List entry names; FileNotFoundError when the directory is absent."""
        try:
            return sorted(entry.name for entry in Path(path).iterdir())
        except (FileNotFoundError, NotADirectoryError):
            raise
        except OSError as e:
            raise StorageError(f"Failed to list {path}: {e}") from e
