"""clip_scout.report: TSV output for product records and processed URLs."""

from clip_scout.report.tsv_report import (
    HEADER,
    RecordWriter,
    product_file_path,
    urls_file_path,
    write_processed_urls,
)

__all__ = ["HEADER", "RecordWriter", "product_file_path", "urls_file_path", "write_processed_urls"]
