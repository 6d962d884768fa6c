# === FILE: clip_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера ClipScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
import re
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
    model_validator,
)

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Any) -> float:
    """Переводит длительность в секунды.

    Принимает число секунд или строку в стиле Go: ``"90s"``, ``"5m"``, ``"1h30m"``,
    ``"250ms"``. Пустая строка и ``None`` означают 0 (триггер выключен).
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lower()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        pass
    pos = 0
    total = 0.0
    for match in _DURATION_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        raise ValueError(f"Неверный формат длительности: {value!r}")
    return total


class WidgetConfig(BaseModel):
    """Идентификаторы DOM-элементов виджета с видео на странице товара."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    container_id: str = Field("webyclip-widget-3", min_length=1)
    thumbnails_id: str = Field("webyclip-thumbnails", min_length=1)
    product_id_field: str = Field("product-id", min_length=1)
    product_url_field: str = Field("product-url", min_length=1)


class CrawlerConfig(BaseModel):
    """Конфигурация для одного запуска краулера."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    seed_url: HttpUrl = Field(
        "https://www.tokopedia.com/", validate_default=True, description="Стартовый URL обхода."
    )
    idle_timeout: float = Field(15.0, gt=0, description="Окно простоя до завершения (секунд).")
    stop_after: float = Field(0.0, ge=0, description="Мягкая остановка через N секунд (0 = выкл).")
    cancel_after: float = Field(0.0, ge=0, description="Жёсткая отмена через N секунд (0 = выкл).")
    stop_at_url: Optional[str] = Field(None, description="Остановить обход на этом URL.")
    cancel_at_url: Optional[str] = Field(None, description="Отменить обход на этом URL.")
    shutdown_grace: float = Field(30.0, ge=0, description="Время на завершение текущего шага после stop.")
    memstats_interval: float = Field(300.0, ge=0, description="Интервал вывода статистики памяти (0 = выкл).")

    headless: bool = Field(True, description="Запуск браузера без UI.")
    user_agent: str = Field("ClipScoutBot/1.0", min_length=1, description="Заголовок User-Agent.")
    fetch_timeout: float = Field(30.0, gt=0, description="Таймаут одного GET-запроса (секунд).")
    fetch_chunk_size: int = Field(8192, ge=1, description="Размер блока при потоковом чтении.")
    discovery_workers: int = Field(8, ge=1, description="Число параллельных задач поиска ссылок.")
    discovery_queue_size: int = Field(1000, ge=1, description="Ёмкость очереди поиска ссылок.")

    settle_delay: float = Field(20.0, ge=0, description="Фиксированное ожидание перед проверкой виджета.")
    visible_timeout: float = Field(30.0, gt=0, description="Ожидание видимости контейнера виджета.")
    navigation_timeout: float = Field(60.0, gt=0, description="Таймаут навигации браузера.")
    navigation_wait: Literal["load", "domcontentloaded", "networkidle", "commit"] = "domcontentloaded"

    output_dir: Path = Field(Path("."), description="Каталог для TSV-файлов.")
    widget: WidgetConfig = Field(default_factory=WidgetConfig)

    @field_validator("stop_after", "cancel_after", "memstats_interval", "shutdown_grace", "idle_timeout", mode="before")
    def _parse_durations(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @field_validator("stop_at_url", "cancel_at_url", mode="before")
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _check_output_dir(self) -> CrawlerConfig:
        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(self.output_dir))
        return self

    @property
    def base_url(self) -> str:
        """Префикс, которому должны соответствовать ссылки внутри домена."""
        return str(self.seed_url)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return CrawlerConfig(**data)


__all__ = ["CrawlerConfig", "WidgetConfig", "ValidationError", "load_config", "parse_duration"]
