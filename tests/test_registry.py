from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest

from future_times.errors import RegistryError
from future_times.ingestion.registry import load_sources, load_standing_topics
from future_times.signals.entities import DEFAULT_PLACES, load_entity_dictionaries

pytestmark = [
    allure.epic("Source Intake"),
    allure.feature("Registries"),
]


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_sources_applies_defaults(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "sources.json",
        {
            "sources": [
                {"id": "npr-us", "type": "RSS", "section": "us", "url": "https://npr.example.com/us"},
                {
                    "source_id": "fred-dgs10",
                    "name": "10-Year Treasury",
                    "type": "csv",
                    "url": "https://fred.example.com/fredgraph.csv?id=DGS10",
                    "enabled": False,
                    "fetch_interval_minutes": 360,
                },
            ],
        },
    )

    first, second = load_sources(path)

    assert first.source_id == "npr-us"
    assert first.name == "npr-us"
    assert first.kind == "rss"
    assert first.section == "U.S."
    assert first.enabled is True
    assert first.fetch_interval_minutes == 60
    assert second.enabled is False
    assert second.section is None
    assert second.fetch_interval_minutes == 360
    assert second.meta["name"] == "10-Year Treasury"


def test_load_sources_rejects_duplicates(tmp_path: Path) -> None:
    entry = {"source_id": "wire", "url": "https://wire.example.com/feed.xml"}
    path = _write(tmp_path / "sources.json", {"sources": [entry, entry]})

    with pytest.raises(RegistryError) as error:
        load_sources(path)

    assert error.value.code == "duplicate_source"


@pytest.mark.parametrize(
    "payload",
    [
        {"feeds": []},
        {"sources": [{"source_id": "no-url"}]},
        {"sources": ["wire"]},
    ],
)
def test_load_sources_rejects_malformed_registry(tmp_path: Path, payload: object) -> None:
    with pytest.raises(RegistryError) as error:
        load_sources(_write(tmp_path / "sources.json", payload))

    assert error.value.code == "invalid_registry"


def test_missing_or_broken_sources_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(RegistryError) as missing:
        load_sources(tmp_path / "absent.json")
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(RegistryError) as invalid:
        load_sources(broken)

    assert missing.value.code == "registry_unreadable"
    assert invalid.value.code == "invalid_registry"
    assert invalid.value.path == str(broken)


def test_missing_standing_topics_file_means_none(tmp_path: Path) -> None:
    assert load_standing_topics(tmp_path / "absent.json") == []


def test_load_standing_topics(registry_files: tuple[Path, Path], tmp_path: Path) -> None:
    _, standing_file = registry_files

    (topic,) = load_standing_topics(standing_file)

    assert topic.topic_key == "ai-agents"
    assert topic.section == "AI"
    assert topic.keywords == ["ai agent", "agentic", "autonomous agent"]
    assert topic.milestones == [{"year": 2031, "event": "Agents run most back offices"}]
    assert topic.enabled is True

    path = _write(
        tmp_path / "extra.json",
        {
            "topics": [
                {"label": "No key"},
                {
                    "topic_key": "ai-compute",
                    "enabled": False,
                    "extrapolation_axes": [{"axis": "cost", "description": "Cost per token"}, "x"],
                },
            ],
        },
    )
    (compute,) = load_standing_topics(path)
    assert compute.section == "AI"
    assert compute.label == "ai-compute"
    assert compute.enabled is False
    assert compute.extrapolation_axes == [{"axis": "cost", "description": "Cost per token"}]


def test_entity_dictionaries_default_per_key(tmp_path: Path) -> None:
    path = _write(tmp_path / "entities.json", {"companies": ["Acme Robotics", " "], "places": "x"})

    dictionaries = load_entity_dictionaries(path)

    assert dictionaries.companies == ("Acme Robotics",)
    assert dictionaries.places == DEFAULT_PLACES
    assert "Acme Robotics" in dictionaries.all_terms()
    assert load_entity_dictionaries(None).source_path is None


def test_configured_entity_dictionaries_must_exist(tmp_path: Path) -> None:
    with pytest.raises(RegistryError) as error:
        load_entity_dictionaries(tmp_path / "absent.json")

    assert error.value.code == "entity_dicts_unreadable"
