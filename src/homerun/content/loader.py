from __future__ import annotations

import json
import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from jsonschema import Draft7Validator

from ..errors import ContentError, UnknownArchetypeError
from .models import (
    AntagonistProfile,
    Archetype,
    ArchetypeProfile,
    BattleCard,
    BattleRules,
    ConsumableSpec,
    ContentCatalog,
    LayoutSpec,
    LootEntry,
    LootRarity,
    Scenario,
)

logger = logging.getLogger(__name__)

_DATA_PKG = "homerun.content"
TABLES = ("archetypes", "layouts", "loot", "scenarios", "obstacles", "economy")


def _read_schema(name: str) -> Dict[str, Any]:
    entry = resources.files(_DATA_PKG).joinpath("schemas").joinpath(f"{name}.schema.json")
    with entry.open("rb") as fh:
        return json.load(fh)


def _read_table(name: str, data_dir: Optional[Path]) -> Any:
    if data_dir is None:
        text = resources.files(_DATA_PKG).joinpath("data").joinpath(f"{name}.yaml").read_text(encoding="utf-8")
        source = f"<bundled {name}.yaml>"
    else:
        path = data_dir / f"{name}.yaml"
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ContentError(f"Cannot read content table {path}: {exc}") from exc
        source = str(path)
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ContentError(f"Malformed YAML in {source}: {exc}") from exc
    logger.debug("Loaded content table %s", source)
    return doc


def validate_table(name: str, doc: Any) -> None:
    """Validate a raw table against its bundled schema, raising ContentError."""
    validator = Draft7Validator(_read_schema(name))
    errors = sorted(validator.iter_errors(doc), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise ContentError(f"Content table '{name}' failed validation", errors)


def _archetype_keys(name: str, doc: Dict[str, Any]) -> Dict[Archetype, Any]:
    out: Dict[Archetype, Any] = {}
    for key, value in doc.items():
        try:
            out[Archetype.parse(key)] = value
        except UnknownArchetypeError:
            raise ContentError(f"Content table '{name}' names unknown archetype {key!r}") from None
    return out


def _build_profiles(doc: Dict[str, Any]) -> Dict[Archetype, ArchetypeProfile]:
    profiles: Dict[Archetype, ArchetypeProfile] = {}
    for arch, raw in _archetype_keys("archetypes", doc).items():
        rules_raw = dict(raw["rules"])
        rules_raw["checkpoints"] = tuple(rules_raw.get("checkpoints", ()))
        rules = BattleRules(**rules_raw)
        if rules.kind == "ladder" and (not rules.checkpoints or rules.max_rounds < 1):
            raise ContentError(f"Ladder rules for '{arch.value}' need checkpoints and max_rounds")
        roster = tuple(
            AntagonistProfile(type_id=r["type"], name=r["name"], aggression=float(r["aggression"]))
            for r in raw["roster"]
        )
        profiles[arch] = ArchetypeProfile(
            archetype=arch,
            width=int(raw["width"]),
            height=int(raw["height"]),
            currency_name=raw["currency_name"],
            roster=roster,
            rules=rules,
        )
    return profiles


def _build_layouts(doc: Dict[str, Any]) -> Dict[Archetype, LayoutSpec]:
    return {
        arch: LayoutSpec(
            archetype=arch,
            spawn=tuple((int(x), int(y)) for x, y in raw["spawn"]),
            exits=tuple((int(x), int(y)) for x, y in raw["exits"]),
            ops=tuple(raw["ops"]),
        )
        for arch, raw in _archetype_keys("layouts", doc).items()
    }


def _build_loot(doc: Dict[str, Any]) -> Tuple[LootEntry, ...]:
    tiers = doc["tiers"]
    generic: List[str] = doc["generic_names"]
    entries: List[LootEntry] = []
    for arch, raw in _archetype_keys("loot", doc["archetypes"]).items():
        prefix = raw["prefix"]
        for rarity in (LootRarity.RED, LootRarity.ORANGE, LootRarity.PURPLE):
            tier = tiers[rarity.value]
            for i, name in enumerate(raw[rarity.value]):
                entries.append(
                    LootEntry(
                        id=f"{prefix}{tier['letter']}{i}",
                        archetype=arch,
                        rarity=rarity,
                        name=name,
                        value=tier["base"] + i * tier["step"],
                    )
                )
        blue = tiers[LootRarity.BLUE.value]
        for i in range(doc["generic_count"]):
            cycle = i // len(generic)
            name = generic[i % len(generic)] + (f" {cycle + 1}" if cycle > 0 else "")
            entries.append(
                LootEntry(
                    id=f"{prefix}{blue['letter']}{i}",
                    archetype=arch,
                    rarity=LootRarity.BLUE,
                    name=name,
                    value=blue["base"] + i * blue["step"],
                )
            )
    ids = [e.id for e in entries]
    if len(ids) != len(set(ids)):
        raise ContentError("Loot catalog produced duplicate ids; archetype prefixes must be distinct")
    return tuple(entries)


def _build_scenarios(doc: Dict[str, Any], profiles: Dict[Archetype, ArchetypeProfile]) -> Tuple[Scenario, ...]:
    scenarios: List[Scenario] = []
    seen = set()
    for arch, items in _archetype_keys("scenarios", doc).items():
        known_types = {a.type_id for a in profiles[arch].roster} if arch in profiles else set()
        for raw in items:
            sid = raw["id"]
            if sid in seen:
                raise ContentError(f"Duplicate scenario id {sid!r}")
            seen.add(sid)
            types = tuple(raw.get("types", ()))
            unknown = [t for t in types if t not in known_types]
            if unknown:
                raise ContentError(f"Scenario {sid!r} targets unknown antagonist types: {unknown}")
            cards = tuple(
                BattleCard(id=f"{sid}-{i}", text=c["text"], correct=bool(c["correct"]))
                for i, c in enumerate(raw["cards"])
            )
            scenarios.append(
                Scenario(id=sid, archetype=arch, topic=raw["topic"], prompt=raw["prompt"], cards=cards, types=types)
            )
    return tuple(scenarios)


def load_catalog_from(data_dir: Optional[Union[Path, str]] = None) -> ContentCatalog:
    """Load, validate and assemble every content table.

    data_dir overrides the bundled tables with a directory of same-named YAML
    files; schemas always come from the package.
    """
    root = Path(data_dir) if data_dir is not None else None
    docs: Dict[str, Any] = {}
    for name in TABLES:
        doc = _read_table(name, root)
        validate_table(name, doc)
        docs[name] = doc

    profiles = _build_profiles(docs["archetypes"])
    layouts = _build_layouts(docs["layouts"])
    missing = sorted(a.value for a in profiles if a not in layouts)
    if missing:
        raise ContentError(f"No layout recipe for archetypes: {missing}")
    for arch, spec in layouts.items():
        if not spec.spawn:
            logger.warning("Layout '%s' defines no preferred spawn; random floor will be used", arch.value)

    quotes = {
        arch: {tile: tuple(lines) for tile, lines in raw.items()}
        for arch, raw in _archetype_keys("obstacles", docs["obstacles"]).items()
    }
    economy = docs["economy"]
    consumables = {
        c["id"]: ConsumableSpec(id=c["id"], name=c["name"], price=int(c["price"]), description=c.get("description", ""))
        for c in economy.get("consumables", [])
    }

    catalog = ContentCatalog(
        archetypes=profiles,
        layouts=layouts,
        loot=_build_loot(docs["loot"]),
        scenarios=_build_scenarios(docs["scenarios"], profiles),
        obstacle_quotes=quotes,
        payouts=tuple(int(p) for p in economy["payouts"]),
        consumables=consumables,
    )
    logger.info(
        "Content catalog ready: %d archetypes, %d loot entries, %d scenarios",
        len(catalog.archetypes),
        len(catalog.loot),
        len(catalog.scenarios),
    )
    return catalog


@lru_cache(maxsize=1)
def load_catalog() -> ContentCatalog:
    """Bundled catalog, loaded once per process."""
    return load_catalog_from(None)


__all__ = ["load_catalog", "load_catalog_from", "validate_table", "TABLES"]
