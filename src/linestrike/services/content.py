from __future__ import annotations

import json
from dataclasses import replace
from collections.abc import Mapping
from pathlib import Path

from jsonschema import Draft202012Validator

from linestrike.engine.match import CharacterConfig, MatchConfig
from linestrike.engine.types import CardTemplate, Side, Variant


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_obj(obj: Mapping[str, object], key: str) -> Mapping[str, object]:
    v = obj.get(key)
    if not isinstance(v, dict):
        raise ContentError(f"Expected object for {key}")
    return v


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContentError(f"Expected int for {key}")
    return v


def _require_number(obj: Mapping[str, object], key: str) -> float:
    v = obj.get(key)
    if not isinstance(v, (int, float)) or isinstance(v, bool):
        raise ContentError(f"Expected number for {key}")
    return float(v)


def _parse_character(raw: Mapping[str, object]) -> CharacterConfig:
    return CharacterConfig(name=_require_str(raw, "name"), max_health=_require_int(raw, "max_health"))


def _parse_template(raw: Mapping[str, object]) -> CardTemplate:
    return CardTemplate(
        type=_require_str(raw, "type"),
        name=_require_str(raw, "name"),
        description=_require_str(raw, "description"),
    )


def parse_config(raw: object) -> MatchConfig:
    """Build a MatchConfig from an already schema-validated rules document."""
    if not isinstance(raw, dict):
        raise ContentError("rules.json must be an object")
    characters = _require_obj(raw, "characters")
    cards = _require_obj(raw, "cards")
    templates_raw = _require_obj(cards, "templates")
    timing = _require_obj(raw, "timing")
    ai = _require_obj(raw, "ai")

    templates: dict[Side, CardTemplate] = {
        "player": _parse_template(_require_obj(templates_raw, "player")),
        "ai": _parse_template(_require_obj(templates_raw, "ai")),
    }
    variant = _require_str(raw, "variant")
    if variant not in ("classic", "cards"):
        raise ContentError(f"Unknown variant: {variant}")

    return MatchConfig(
        variant=variant,  # type: ignore[arg-type]
        damage_per_line=_require_int(raw, "damage_per_line"),
        player=_parse_character(_require_obj(characters, "player")),
        ai=_parse_character(_require_obj(characters, "ai")),
        deck_size=_require_int(cards, "deck_size"),
        hand_size=_require_int(cards, "hand_size"),
        card_templates=templates,
        ai_think_delay=_require_number(timing, "ai_think_delay"),
        line_clear_delay=_require_number(timing, "line_clear_delay"),
        tie_reset_delay=_require_number(timing, "tie_reset_delay"),
        skill=_require_number(ai, "skill"),
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_config(self, variant: Variant | None = None) -> MatchConfig:
        path = self._data_dir / "rules.json"
        raw = _load_json(path)
        schema = _load_json(self._schema_dir / "rules.schema.json")
        validate_json(raw, schema, context=str(path))
        cfg = parse_config(raw)
        if variant is not None and variant != cfg.variant:
            cfg = replace(cfg, variant=variant)
        return cfg

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_config()
