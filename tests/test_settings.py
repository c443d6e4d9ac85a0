from __future__ import annotations

import os

import settings
from settings import normalize_projects


def test_normalize_projects_applies_defaults() -> None:
    projects = normalize_projects(
        [
            {"topic": "flats", "url": "https://a.example", "pages": 5},
            {"topic": "cars", "url": "https://b.example", "pages": "oops", "disabled": True},
            {"topic": "single", "url": "https://c.example", "singlePage": True},
            {"topic": "", "url": "https://d.example"},
            {"topic": "no-url"},
        ],
        default_pages=3,
    )

    assert [(p.topic, p.pages_to_scan, p.disabled, p.single_page) for p in projects] == [
        ("flats", 5, False, False),
        ("cars", 3, True, False),
        ("single", 3, False, True),
    ]


def test_config_in_working_directory_wins(tmp_path, monkeypatch) -> None:
    (tmp_path / "config.json").write_text("{}", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert settings._default_config_path() == os.path.join(str(tmp_path), "config.json")


def test_config_falls_back_to_project_root(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert settings._default_config_path() == os.path.join(settings.PROJECT_ROOT, "config.json")
