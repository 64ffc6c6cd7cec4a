"""Configuration helpers for the campaign processor."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from . import defaults
from .errors import ConfigurationError

LOGGER = logging.getLogger(__name__)


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Configuration file '{file_path}' could not be parsed: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


@dataclass(frozen=True, slots=True)
class SiteConfig:
    """A demo site offered for a business category."""

    url: str
    display_name: str


@dataclass(frozen=True, slots=True)
class TemplateBundle:
    """Message template fragments. ``None`` means "not set" in an override bundle."""

    greeting: Optional[str] = None
    intro: Optional[str] = None
    demo_section_header: Optional[str] = None
    demo_link_format: Optional[str] = None


@dataclass(frozen=True)
class MessageTemplates:
    """Default bundle plus optional per-category overrides."""

    default: TemplateBundle
    overrides: Dict[str, TemplateBundle] = field(default_factory=dict)

    def part(self, business_type: str, name: str) -> str:
        """Return the category override for ``name`` if set, else the default."""
        override = self.overrides.get(business_type)
        if override is not None:
            value = getattr(override, name)
            if value is not None:
                return value
        return getattr(self.default, name) or ""


@dataclass(frozen=True)
class ShortenerSettings:
    """Connection and retry settings for the bulk URL shortener."""

    base_url: str = defaults.SHORTENER["base_url"]
    bulk_endpoint: str = defaults.SHORTENER["bulk_endpoint"]
    timeout_seconds: float = defaults.SHORTENER["timeout_seconds"]
    connection_test_timeout_seconds: float = defaults.SHORTENER["connection_test_timeout_seconds"]
    max_attempts: int = defaults.SHORTENER["max_attempts"]
    retry_delay_seconds: float = defaults.SHORTENER["retry_delay_seconds"]
    user_agent: str = defaults.SHORTENER["user_agent"]
    origin: Optional[str] = defaults.SHORTENER["origin"]
    test_connection: bool = defaults.SHORTENER["test_connection"]

    @property
    def bulk_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.bulk_endpoint}"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ShortenerSettings":
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown shortener settings: {', '.join(unknown)}")
        settings = cls(**values)
        if settings.max_attempts < 1:
            raise ConfigurationError("Shortener 'max_attempts' must be at least 1")
        return settings


@dataclass(frozen=True)
class CampaignConfig:
    """Everything the pipeline needs besides the input rows."""

    business_types: Dict[str, List[SiteConfig]]
    templates: MessageTemplates
    synonyms: Dict[str, str]
    shortener: ShortenerSettings = field(default_factory=ShortenerSettings)


def parse_business_types(raw: Mapping[str, Any]) -> Dict[str, List[SiteConfig]]:
    """Parse ``{category: [{url, display_name}, ...]}``.

    The ``{category: {"sites": [...]}}`` shape is accepted as well.
    """

    if not isinstance(raw, Mapping):
        raise ConfigurationError("'business_types' must be a mapping of category to demo sites")

    parsed: Dict[str, List[SiteConfig]] = {}
    for category, entry in raw.items():
        sites = entry.get("sites", []) if isinstance(entry, Mapping) else entry
        if sites is None:
            sites = []
        if not isinstance(sites, list):
            raise ConfigurationError(f"Demo sites for '{category}' must be a list")

        parsed_sites: List[SiteConfig] = []
        for index, site in enumerate(sites):
            if not isinstance(site, Mapping) or not site.get("url"):
                raise ConfigurationError(f"Demo site {index} for '{category}' is missing a 'url'")
            display_name = site.get("display_name") or site["url"]
            parsed_sites.append(SiteConfig(url=str(site["url"]), display_name=str(display_name)))
        parsed[str(category).strip().lower()] = parsed_sites
    return parsed


def _parse_bundle(raw: Any, label: str) -> TemplateBundle:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Template bundle '{label}' must be a mapping")
    known = {item.name for item in fields(TemplateBundle)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"Template bundle '{label}' has unknown keys: {', '.join(unknown)}")
    return TemplateBundle(**{key: str(value) for key, value in raw.items() if value is not None})


def parse_message_templates(raw: Mapping[str, Any]) -> MessageTemplates:
    """Parse ``{"whatsapp": {...}, "business_type_customization": {...}}``."""

    if not isinstance(raw, Mapping):
        raise ConfigurationError("'message_templates' must be a mapping")
    default = _parse_bundle(raw.get("whatsapp", {}), "whatsapp")
    customization = raw.get("business_type_customization") or {}
    if not isinstance(customization, Mapping):
        raise ConfigurationError("'business_type_customization' must be a mapping")
    overrides = {
        str(category).strip().lower(): _parse_bundle(bundle, str(category))
        for category, bundle in customization.items()
    }
    return MessageTemplates(default=default, overrides=overrides)


def parse_synonyms(raw: Mapping[str, Any]) -> Dict[str, str]:
    if not isinstance(raw, Mapping):
        raise ConfigurationError("'business_type_synonyms' must be a mapping")
    synonyms: Dict[str, str] = {}
    for alias, target in raw.items():
        canonical = str(target).strip().lower()
        if canonical not in defaults.BUSINESS_TYPES:
            raise ConfigurationError(
                f"Synonym '{alias}' maps to unknown business type '{target}'. "
                f"Must be one of: {', '.join(defaults.BUSINESS_TYPES)}"
            )
        synonyms[str(alias).strip().lower()] = canonical
    return synonyms


def _merge_templates(base: Mapping[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(extra, Mapping):
        raise ConfigurationError("'message_templates' must be a mapping")
    merged: Dict[str, Any] = {
        "whatsapp": dict(base.get("whatsapp", {})),
        "business_type_customization": {
            key: dict(value) for key, value in base.get("business_type_customization", {}).items()
        },
    }
    whatsapp = extra.get("whatsapp") or {}
    if not isinstance(whatsapp, Mapping):
        raise ConfigurationError("Template bundle 'whatsapp' must be a mapping")
    merged["whatsapp"].update(whatsapp)

    customization = extra.get("business_type_customization") or {}
    if not isinstance(customization, Mapping):
        raise ConfigurationError("'business_type_customization' must be a mapping")
    for category, bundle in customization.items():
        bundle = bundle or {}
        if not isinstance(bundle, Mapping):
            raise ConfigurationError(f"Template bundle '{category}' must be a mapping")
        merged["business_type_customization"].setdefault(category, {}).update(bundle)
    return merged


def load_campaign_config(
    path: str | Path | None = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> CampaignConfig:
    """Build the campaign configuration from defaults and an optional override file."""

    overrides = load_configuration(path) if path else {}
    environ = os.environ if environ is None else environ

    raw_business_types: Dict[str, Any] = dict(defaults.DEMO_SITES)
    file_business_types = overrides.get("business_types")
    if file_business_types is not None:
        if not isinstance(file_business_types, Mapping):
            raise ConfigurationError("'business_types' must be a mapping of category to demo sites")
        raw_business_types.update(file_business_types)

    raw_templates = _merge_templates(defaults.MESSAGE_TEMPLATES, overrides.get("message_templates") or {})

    synonyms = parse_synonyms(defaults.CATEGORY_SYNONYMS)
    synonyms.update(parse_synonyms(overrides.get("business_type_synonyms") or {}))

    shortener_values = overrides.get("shortener") or {}
    if not isinstance(shortener_values, Mapping):
        raise ConfigurationError("'shortener' must be a mapping")
    shortener = ShortenerSettings.from_mapping(shortener_values)
    env_url = environ.get(defaults.SHORTENER_URL_ENV)
    if env_url:
        LOGGER.debug("Using shortener URL from %s", defaults.SHORTENER_URL_ENV)
        shortener = replace(shortener, base_url=env_url)

    return CampaignConfig(
        business_types=parse_business_types(raw_business_types),
        templates=parse_message_templates(raw_templates),
        synonyms=synonyms,
        shortener=shortener,
    )


__all__ = [
    "CampaignConfig",
    "MessageTemplates",
    "ShortenerSettings",
    "SiteConfig",
    "TemplateBundle",
    "load_campaign_config",
    "load_configuration",
    "parse_business_types",
    "parse_message_templates",
    "parse_synonyms",
]
