# File: clip_scout/utils.py
"""clip_scout.utils: Утилитарные функции для обработки URL и имён выходных файлов."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlparse

from clip_scout.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_in_domain",
    "domain_label",
)


def normalize_url(url: str) -> str:
    """Обрезает URL до ``scheme://host/segment1/segment2``.

    Более глубокие ссылки (отзывы, вложенные разделы) сводятся к странице
    товара; короткие URL возвращаются без изменений.
    """
    parts = url.split("/")
    if len(parts) > 5 and parts[3] and parts[4]:
        normalized = parts[0] + "//" + parts[1] + parts[2] + "/" + parts[3] + "/" + parts[4]
        logger.debug("Normalized URL: %s -> %s", url, normalized)
        return normalized
    return url


def is_in_domain(url: str, base_url: str) -> bool:
    """Проверяет, что ссылка начинается с базового URL обхода."""
    return url.startswith(base_url)


def domain_label(url: str) -> str:
    """Возвращает первую метку хоста без ``www.``: ``https://www.shop.com/`` → ``shop``."""
    host = urlparse(url).hostname or url
    host = host.removeprefix("www.")
    return host.split(".", 1)[0] or "crawl"
