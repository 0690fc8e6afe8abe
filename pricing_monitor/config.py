# === FILE: pricing_monitor/config.py ===
"""
Модуль для загрузки и валидации конфигурации PricingMonitor.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Union
from urllib.parse import urlparse

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

DEFAULT_SAMPLE_URL = "https://www.example-cruises.com/cruises/ocean/british-isles-explorer/pricing.html"


class DomainConfig(BaseModel):
    """Один отслеживаемый сайт семейства."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    base_url: HttpUrl
    enabled: bool = True
    notes: Optional[str] = None

    @property
    def hostname(self) -> str:
        return (urlparse(str(self.base_url)).hostname or "").lower()


class CrawlConfig(BaseModel):
    """Ограничения обхода ссылок от стартовых страниц."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(100, ge=1, description="Жесткий лимит по числу посещённых страниц.")
    max_depth: int = Field(3, ge=0, description="Максимальная глубина обхода ссылок.")
    concurrency: int = Field(1, ge=1, description="Число параллельных воркеров на одну стартовую страницу.")
    renderer: Literal["browser", "http"] = Field("browser", description="Чем загружать страницы.")


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    manifest_file: Path = Path("pricing-urls.json")
    results_json: Path = Path("results.json")
    results_csv: Path = Path("results.csv")
    results_html: Optional[Path] = None
    screenshots_dir: Path = Path("screenshots")


class MonitorConfig(BaseModel):
    """Конфигурация одного запуска обнаружения и проверки страниц."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    domains: List[DomainConfig] = Field(default_factory=list, description="Сайты семейства.")
    target_patterns: List[str] = Field(
        default_factory=lambda: [r"/pricing\.html$", r"/pricing$", r"/prices\.html$"],
        description="Регулярные выражения для целевых URL.",
    )
    sitemap_urls: List[str] = Field(default_factory=list, description="Удалённые sitemap.")
    sitemap_dir: Optional[Path] = Field(None, description="Каталог с локальной копией sitemap.")
    seed_urls: List[str] = Field(default_factory=list, description="Стартовые страницы обхода.")
    follow_patterns: List[str] = Field(
        default_factory=lambda: [
            r"/cruises?/",
            r"/oceans?/",
            r"/rivers?/",
            r"/expeditions?/",
            r"/destinations?/",
            r"/itinerar",
            r"/voyage",
        ],
        description="Пути, которые вероятно ведут к целевым страницам.",
    )
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)

    max_concurrent_discovery: int = Field(5, ge=1, description="Размер пакета дочерних sitemap.")
    max_concurrent_tests: int = Field(10, ge=1, description="Число параллельно проверяемых страниц.")
    request_timeout: float = Field(10.0, gt=0, description="Таймаут HTTP-запроса (секунд).")
    page_load_timeout: float = Field(10.0, gt=0, description="Таймаут навигации браузера (секунд).")
    load_time_threshold_ms: int = Field(10_000, ge=0, description="Порог предупреждения о медленной загрузке.")

    user_agent: str = Field("PricingMonitor/1.0 (Automated Testing)", min_length=1)
    viewport_width: int = Field(1280, gt=0)
    viewport_height: int = Field(720, gt=0)
    headless: bool = True

    output: OutputConfig = Field(default_factory=OutputConfig)
    webhook_url: Optional[str] = Field(None, description="Slack webhook для уведомлений.")
    sample_url: str = Field(DEFAULT_SAMPLE_URL, description="URL на случай отсутствия манифеста.")

    @field_validator("target_patterns", "follow_patterns")
    @classmethod
    def _check_regexes(cls, v: List[str]) -> List[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"Неправильное регулярное выражение {pattern!r}: {exc}") from exc
        return v

    @model_validator(mode="after")
    def _check_sitemap_dir(self) -> MonitorConfig:
        if self.sitemap_dir is not None and self.sitemap_dir.exists() and not self.sitemap_dir.is_dir():
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(self.sitemap_dir))
        return self

    @property
    def target_regexes(self) -> List[re.Pattern[str]]:
        return [re.compile(p, re.IGNORECASE) for p in self.target_patterns]

    @property
    def follow_regexes(self) -> List[re.Pattern[str]]:
        return [re.compile(p, re.IGNORECASE) for p in self.follow_patterns]

    @property
    def domain_family(self) -> List[str]:
        """Хосты включённых доменов без префикса ``www.``."""
        family: List[str] = []
        for domain in self.domains:
            if not domain.enabled:
                continue
            host = domain.hostname.removeprefix("www.")
            if host and host not in family:
                family.append(host)
        return family


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")

_Parser = Callable[[str], Any]

# Расширение файла -> (название формата, парсер, ошибка парсера)
_FORMATS: Dict[str, Tuple[str, _Parser, type[Exception]]] = {
    ".yaml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".yml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".json": ("JSON", json.loads, json.JSONDecodeError),
}


def _missing(path: Path) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path))


def _read_mapping(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    if suffix not in _FORMATS:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix or path.name}")
    kind, parse, parse_error = _FORMATS[suffix]
    try:
        data = parse(path.read_text(encoding="utf-8")) or {}
    except parse_error as exc:
        raise ValueError(f"Неправильный {kind} в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень {kind} должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> MonitorConfig:
    """
    Читает YAML или JSON и возвращает проверенный MonitorConfig.

    Без path берётся configs/default.yaml относительно текущего каталога.
    FileNotFoundError, если файла нет; ValueError для битого файла или
    неизвестного расширения; TypeError, если верхний уровень не mapping;
    pydantic.ValidationError для неверных значений.
    """
    source = DEFAULT_CONFIG_PATH if path is None else Path(path).expanduser().resolve()
    if not source.is_file():
        raise _missing(source)
    return MonitorConfig(**_read_mapping(source))


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CrawlConfig",
    "DomainConfig",
    "MonitorConfig",
    "OutputConfig",
    "ValidationError",
    "load_config",
]
