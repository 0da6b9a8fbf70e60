"""Convert OpenAPI names into Rust identifiers.

Pattern:
  - type names        -> PascalCase      (createPet      -> CreatePet)
  - field identifiers -> snake_case      (petId          -> pet_id)
  - enum variants     -> PascalCase      (in-progress    -> InProgress)

Examples:
  to_pascal_case("listRoles-Input")  -> "ListRolesInput"
  to_field_identifier("type")        -> "r#type"
  to_field_identifier("self")        -> "self_"
  to_field_identifier("2fa-code")    -> "_2fa_code"
  to_variant_identifier("enum")      -> "EnumValue"
"""

from __future__ import annotations

import re

# Strict, reserved and weak keywords that cannot be plain identifiers
RUST_RESERVED_KEYWORDS: frozenset[str] = frozenset({
    "as", "break", "const", "continue", "crate", "else", "enum", "extern",
    "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
    "move", "mut", "pub", "ref", "return", "self", "static", "struct",
    "super", "trait", "true", "type", "unsafe", "use", "where", "while",
    "async", "await", "dyn", "abstract", "become", "box", "do", "final",
    "macro", "override", "priv", "try", "typeof", "unsized", "virtual",
    "yield",
})

# Keywords that cannot be used even as raw identifiers (r#self is invalid)
_NON_RAW_KEYWORDS: frozenset[str] = frozenset({"self", "super", "crate"})

_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")


def is_reserved_word(word: str) -> bool:
    """Check a word against the keyword table, ignoring case."""
    return word.lower() in RUST_RESERVED_KEYWORDS


def to_pascal_case(value: str) -> str:
    """Convert camelCase, kebab-case or snake_case to PascalCase.

    Only the first character of each segment is uppercased, so existing
    inner capitals survive ("listRoles" -> "ListRoles").
    """
    return "".join(part[0].upper() + part[1:] for part in _SEPARATORS.split(value) if part)


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def to_field_identifier(name: str) -> str:
    """Turn a wire property name into a Rust struct field identifier."""
    ident = _camel_to_snake(name)
    ident = _SEPARATORS.sub("_", ident).strip("_")
    if not ident:
        ident = "field"
    if ident[0].isdigit():
        ident = f"_{ident}"

    if ident in _NON_RAW_KEYWORDS:
        return f"{ident}_"
    if is_reserved_word(ident):
        return f"r#{ident}"
    return ident


def to_variant_identifier(value: str) -> tuple[str, bool]:
    """Turn an enum literal into a variant identifier.

    Returns the identifier and whether it had to be escaped because it
    collides with a keyword.
    """
    ident = to_pascal_case(value)
    if not ident or ident[0].isdigit():
        ident = f"Value{ident}"
    if is_reserved_word(ident):
        return f"{ident}Value", True
    return ident, False
