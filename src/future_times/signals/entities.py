"""Entity dictionaries used for lightweight named-entity lookup."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from future_times.errors import RegistryError

logger = logging.getLogger(__name__)

DEFAULT_COMPANIES: tuple[str, ...] = (
    "Apple", "Microsoft", "Google", "Alphabet", "Amazon", "Meta", "Nvidia", "Intel", "AMD",
    "TSMC", "Samsung", "ASML", "Qualcomm", "Broadcom", "Tesla", "OpenAI", "Anthropic",
    "DeepMind", "IBM", "Oracle", "Salesforce", "Netflix", "Disney", "Boeing", "Airbus",
    "JPMorgan", "Goldman Sachs", "BlackRock", "Berkshire Hathaway", "ExxonMobil", "Shell",
    "Pfizer", "Moderna", "Walmart", "Uber", "SpaceX", "ByteDance", "TikTok", "Huawei",
    "Alibaba", "Tencent", "Toyota", "Volkswagen",
)  # fmt: skip

DEFAULT_PLACES: tuple[str, ...] = (
    "United States", "Washington", "New York", "California", "Texas", "Florida", "China",
    "Beijing", "Taiwan", "Japan", "South Korea", "India", "Russia", "Moscow", "Ukraine",
    "Kyiv", "Europe", "Germany", "France", "Britain", "United Kingdom", "London", "Brussels",
    "Israel", "Gaza", "Iran", "Saudi Arabia", "Brazil", "Mexico", "Canada", "Australia",
    "Africa", "Nigeria", "Middle East", "Silicon Valley",
)  # fmt: skip

DEFAULT_INSTITUTIONS: tuple[str, ...] = (
    "Federal Reserve", "Congress", "Senate", "House of Representatives", "Supreme Court",
    "White House", "Pentagon", "Department of Justice", "FTC", "SEC", "FDA", "CDC", "NASA",
    "European Union", "European Commission", "European Central Bank", "NATO",
    "United Nations", "World Bank", "IMF", "WHO", "OPEC", "Bank of England", "Bank of Japan",
)  # fmt: skip


@dataclass(slots=True)
class EntityDictionaries:
    """Companies, places and institutions matched by case-insensitive substring."""

    companies: tuple[str, ...] = DEFAULT_COMPANIES
    places: tuple[str, ...] = DEFAULT_PLACES
    institutions: tuple[str, ...] = DEFAULT_INSTITUTIONS
    source_path: Path | None = field(default=None, compare=False)

    def all_terms(self) -> tuple[str, ...]:
        return (*self.companies, *self.places, *self.institutions)


def load_entity_dictionaries(path: Path | None) -> EntityDictionaries:
    """Load dictionaries from JSON, falling back to built-in defaults per key.

    The file holds ``{"companies": [...], "places": [...], "institutions": [...]}``;
    missing keys keep their defaults. A missing or unreadable file is an error
    only when a path was explicitly configured.
    """

    if path is None:
        return EntityDictionaries()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise RegistryError(
            message=f"Cannot read entity dictionaries from {path}: {error}",
            code="entity_dicts_unreadable",
            path=str(path),
        ) from error
    if not isinstance(payload, dict):
        raise RegistryError(
            message=f"Entity dictionaries file {path} must contain a JSON object.",
            code="entity_dicts_invalid",
            path=str(path),
        )

    dictionaries = EntityDictionaries(
        companies=_terms(payload.get("companies"), DEFAULT_COMPANIES),
        places=_terms(payload.get("places"), DEFAULT_PLACES),
        institutions=_terms(payload.get("institutions"), DEFAULT_INSTITUTIONS),
        source_path=path,
    )
    logger.info(
        "Loaded entity dictionaries from %s (companies=%d places=%d institutions=%d).",
        path,
        len(dictionaries.companies),
        len(dictionaries.places),
        len(dictionaries.institutions),
    )
    return dictionaries


def _terms(raw: object, default: tuple[str, ...]) -> tuple[str, ...]:
    if not isinstance(raw, list):
        return default
    return tuple(str(item).strip() for item in raw if str(item).strip())
