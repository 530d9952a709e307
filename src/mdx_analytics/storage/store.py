"""Store facade mapping (category, year, month) keys to documents."""
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from mdx_analytics.aggregation import (
    Aggregator,
    Category,
    DocumentRef,
    MonthlyAggregate,
    Record,
    StoredDocument,
)
from mdx_analytics.documents import encode, split_document
from mdx_analytics.utils import get_logger, ValidationError
from .local import LocalFileStorage, StorageAdapter

logger = get_logger()

DEFAULT_BASE_DIR = "content/analytics"
DEFAULT_EXTENSION = "mdx"
_YEAR_PATTERN = re.compile(r"^\d{4}$")


class AnalyticsStore:
    """Reads, writes and lists month documents under a base directory."""

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        base_dir: Union[str, Path, None] = None,
        extension: str = DEFAULT_EXTENSION,
        aggregator: Optional[Aggregator] = None
    ):
        """
        Initialize the store.

        Args:
            storage: Storage adapter (local filesystem by default)
            base_dir: Root directory of all documents
            extension: Document file extension, without the dot
            aggregator: Aggregator used by ``write``
        """
        self.storage = storage or LocalFileStorage()
        self.base_dir = Path(base_dir or DEFAULT_BASE_DIR)
        self.extension = extension.lstrip(".")
        self.aggregator = aggregator or Aggregator()
        self._month_pattern = re.compile(rf"^(\d{{2}})\.{re.escape(self.extension)}$")

    def path_for(self, category: Union[Category, str], year: int, month: int) -> Path:
        """Return the canonical document path for a key."""
        category = Category.parse(category)
        if not 1 <= int(month) <= 12:
            raise ValidationError(f"Month must be between 1 and 12, got {month}")
        return self.base_dir / category.value / str(year) / f"{int(month):02d}.{self.extension}"

    def put(self, aggregate: MonthlyAggregate) -> Path:
        """
        Encode and write an aggregate, replacing any existing document.

        Args:
            aggregate: Aggregate to persist

        Returns:
            Path of the written document
        """
        path = self.path_for(aggregate.category, aggregate.year, aggregate.month)
        self.storage.make_dirs(path.parent)
        self.storage.write_text(path, encode(aggregate))
        logger.info(
            f"Analytics written to {path} "
            f"(totalCount={aggregate.total_count}, days={aggregate.unique_count})"
        )
        return path

    def write(
        self,
        category: Union[Category, str],
        year: int,
        month: int,
        records: Sequence[Record],
        overrides: Optional[Dict[str, Any]] = None,
        now: Optional[str] = None
    ) -> Path:
        """
        Aggregate records for one month and write the document.

        Args:
            category: Analytics category
            year: Document year
            month: Document month (1-12)
            records: Records of that month
            overrides: Header fields applied after the computed ones
            now: ISO timestamp stored as ``lastUpdated``

        Returns:
            Path of the written document
        """
        aggregate = self.aggregator.aggregate(Category.parse(category), year, month, records, now=now)
        if overrides:
            aggregate.extra.update(overrides)
        return self.put(aggregate)

    def get(self, category: Union[Category, str], year: int, month: int) -> Optional[StoredDocument]:
        """
        Read a month document.

        Returns:
            StoredDocument, or None when the document does not exist or its
            header cannot be read
        """
        category = Category.parse(category)
        path = self.path_for(category, year, month)
        try:
            text = self.storage.read_text(path)
        except FileNotFoundError:
            return None

        parts = split_document(text)
        if parts is None:
            logger.warning(f"Ignoring document without a readable header: {path}")
            return None

        header, body = parts
        return StoredDocument(
            category=category,
            year=int(year),
            month=int(month),
            path=path,
            header=header,
            body=body
        )

    def list(self, category: Union[Category, str, None] = None) -> List[DocumentRef]:
        """
        List existing documents for one or all categories.

        Returns:
            DocumentRef objects, most recent month first
        """
        categories = [Category.parse(category)] if category else list(Category)
        refs: List[DocumentRef] = []

        for cat in categories:
            category_dir = self.base_dir / cat.value
            try:
                years = self.storage.list_dir(category_dir)
            except FileNotFoundError:
                continue

            for year in years:
                if not _YEAR_PATTERN.match(year):
                    continue
                year_dir = category_dir / year
                try:
                    months = self.storage.list_dir(year_dir)
                except (FileNotFoundError, NotADirectoryError):
                    continue

                for month_file in months:
                    match = self._month_pattern.match(month_file)
                    if not match:
                        continue
                    month = int(match.group(1))
                    if not 1 <= month <= 12:
                        continue
                    refs.append(DocumentRef(
                        category=cat,
                        year=int(year),
                        month=month,
                        path=year_dir / month_file
                    ))

        order = {cat: index for index, cat in enumerate(Category)}
        refs.sort(key=lambda ref: (-ref.year, -ref.month, order[ref.category]))
        return refs
