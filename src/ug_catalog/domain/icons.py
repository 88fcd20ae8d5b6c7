"""Product icon resolution.

Products store a free-form icon string. It resolves either to one of the
built-in icons (closed enum, explicit lookup table) or passes through as a
Font Awesome class. Anything else falls back to the default icon.
"""

from dataclasses import dataclass
from enum import Enum


class ProductIcon(str, Enum):
    ZAP = "zap"
    SPARKLES = "sparkles"
    STAR = "star"
    CROWN = "crown"
    ROCKET = "rocket"
    TARGET = "target"


DEFAULT_ICON = ProductIcon.ZAP

_ICON_LOOKUP: dict[str, ProductIcon] = {
    "zap": ProductIcon.ZAP,
    "sparkles": ProductIcon.SPARKLES,
    "star": ProductIcon.STAR,
    "crown": ProductIcon.CROWN,
    "rocket": ProductIcon.ROCKET,
    "target": ProductIcon.TARGET,
}

_FA_EXPLICIT_PREFIX = "fa:"
_FA_CLASS_PREFIXES = ("fa-", "fab ", "fas ", "far ")


@dataclass(frozen=True)
class ResolvedIcon:
    kind: str   # "builtin" | "font_awesome"
    name: str


def resolve_icon(raw: str | None) -> ResolvedIcon:
    if not raw:
        return ResolvedIcon("builtin", DEFAULT_ICON.value)
    value = raw.strip()
    if value.startswith(_FA_EXPLICIT_PREFIX):
        fa_class = value[len(_FA_EXPLICIT_PREFIX):].strip()
        if fa_class:
            return ResolvedIcon("font_awesome", fa_class)
        return ResolvedIcon("builtin", DEFAULT_ICON.value)
    if value.startswith(_FA_CLASS_PREFIXES):
        return ResolvedIcon("font_awesome", value)
    icon = _ICON_LOOKUP.get(value.lower(), DEFAULT_ICON)
    return ResolvedIcon("builtin", icon.value)
