import os
from pathlib import Path

import yaml

from app.core.exceptions import InvalidInputError

_DEFAULT_PATH = Path(__file__).resolve().parent.parent / "tax_forms"


def _forms_path() -> Path:
    """Read TAX_FORMS_PATH at call time (supports env var changes in tests)."""
    return Path(os.getenv("TAX_FORMS_PATH", str(_DEFAULT_PATH)))


# Simple dict cache keyed by (name, path) so test env var overrides still work
_cache: dict[tuple, dict] = {}


def _load(name: str) -> dict:
    path = _forms_path()
    cache_key = (name, str(path))
    if cache_key in _cache:
        return _cache[cache_key]

    target = path / f"{name}.yaml"
    if not target.exists():
        raise FileNotFoundError(f"No definition named {name} in {path}")
    with open(target, encoding="utf-8") as f:
        result = yaml.safe_load(f)
    _cache[cache_key] = result
    return result


def available_form_types() -> list[str]:
    return sorted(p.stem for p in _forms_path().glob("*.yaml") if p.stem.isupper())


def load_form_definition(form_type: str) -> dict:
    """Raw YAML definition of a rental tax form (T776, TP128, ...)."""
    if not form_type or form_type not in available_form_types():
        raise InvalidInputError(
            f"Unknown rental tax form type: {form_type!r}.",
            details={"available": available_form_types()},
        )
    return _load(form_type)


def get_cca_classes() -> dict:
    return _load("cca_classes").get("classes", {})
