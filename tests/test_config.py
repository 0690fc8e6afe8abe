# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from pricing_monitor.config import MonitorConfig, load_config

REPO_DEFAULT = Path(__file__).resolve().parents[1] / "configs" / "default.yaml"


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("domains:\n  - {name: Main, base_url: https://www.example-cruises.com}", ".yaml", None),
        (json.dumps({"domains": [{"name": "Main", "base_url": "https://www.example-cruises.com"}]}), ".json", None),
        (json.dumps({"crawl": {"max_pages": 0}}), ".json", ValidationError),
        ("unknown_key: 1", ".yaml", ValidationError),
        ("target_patterns: ['(']", ".yml", ValidationError),
        ("not: a: mapping", ".yaml", ValueError),
        ("{broken json", ".json", ValueError),
        ("- a\n- b", ".yaml", TypeError),
        ("domains = []", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, MonitorConfig)
        assert cfg.domain_family == ["example-cruises.com"]


def test_load_config_default_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        load_config(None)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_sitemap_dir_must_be_directory(tmp_path):
    not_a_dir = tmp_path / "sitemap.xml"
    not_a_dir.write_text("<urlset/>", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        MonitorConfig(sitemap_dir=not_a_dir)


def test_defaults_and_derived_values(basic_config):
    assert basic_config.domain_family == ["example-cruises.com", "example-oceancruises.com"]
    assert basic_config.user_agent == "PricingMonitor/1.0 (Automated Testing)"
    assert any(p.search("https://h.com/x/PRICING.html") for p in basic_config.target_regexes)
    assert not any(p.search("https://h.com/x/pricing.html/") for p in basic_config.target_regexes)


def test_config_is_frozen(basic_config):
    with pytest.raises(ValidationError):
        basic_config.max_concurrent_tests = 3
    updated = basic_config.model_copy(update={"max_concurrent_tests": 3})
    assert updated.max_concurrent_tests == 3


def test_repository_default_config_loads():
    cfg = load_config(REPO_DEFAULT)
    assert cfg.domains
    assert cfg.sitemap_urls
