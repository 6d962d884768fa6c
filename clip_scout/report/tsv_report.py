# clip_scout/report/tsv_report.py

"""
Запись результатов ClipScout в TSV-файлы.

Два файла на домен: ``<domain>-ProductDetails.csv`` с записями о товарах и
``<domain>-ProcessedURLs.csv`` со списком обработанных URL. Оба только
дописываются, одна запись на строку.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

from clip_scout.crawler.models import ProductRecord
from clip_scout.errors import OutputError
from clip_scout.logger import logger
from clip_scout.utils import domain_label

HEADER = "Product_ID\tProduct_URL\tYoutube_Video_URLs"


def product_file_path(output_dir: Union[str, Path], base_url: str) -> Path:
    """Путь к файлу записей о товарах для домена base_url."""
    return Path(output_dir) / f"{domain_label(base_url)}-ProductDetails.csv"


def urls_file_path(output_dir: Union[str, Path], base_url: str) -> Path:
    """Путь к списку обработанных URL для домена base_url."""
    return Path(output_dir) / f"{domain_label(base_url)}-ProcessedURLs.csv"


class RecordWriter:
    """Дописывает ProductRecord в TSV; заголовок пишется при создании файла."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.written = 0

    def append(self, record: ProductRecord) -> bool:
        """
        Дописывает одну запись. Ошибка открытия или записи не фатальна:
        запись теряется, краулер продолжает работу.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            created = not self.path.exists()
            with self.path.open("a", encoding="utf-8", newline="") as f:
                if created:
                    logger.info("Creating %s with the header line", self.path)
                    f.write(HEADER + "\n")
                f.write(record.to_row() + "\n")
        except OSError as exc:
            logger.error("Could not write record for %s to %s: %s", record.product_url, self.path, exc)
            return False
        self.written += 1
        return True


def write_processed_urls(path: Union[str, Path], urls: Iterable[str]) -> Path:
    """Дописывает обработанные URL, по одному на строку. Ошибка здесь фатальна."""
    output = Path(path)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("a", encoding="utf-8", newline="") as f:
            for url in urls:
                f.write(f"{url}\n")
    except OSError as exc:
        raise OutputError(f"Cannot write processed URLs to {output}: {exc}") from exc
    return output


__all__ = ["HEADER", "RecordWriter", "product_file_path", "urls_file_path", "write_processed_urls"]
