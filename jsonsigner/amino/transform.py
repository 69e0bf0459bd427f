# jsonsigner/amino/transform.py
"""
Rewrite a protobuf-JSON value tree into its legacy amino JSON shape.

Objects tagged with "@type" become {"type": <legacy name>, "value": ...}.
Inside a tagged object, empty fields are dropped and the descriptor's
rename and enum tables apply, keyed by paths rooted at that object.
"""

from dataclasses import dataclass
from typing import Any

from jsonsigner.amino.registry import DEFAULT_REGISTRY, LegacyTypeDescriptor, TypeRegistry
from jsonsigner.errors import EnumValueNotFound, MissingInlineField

TYPE_FIELD = "@type"

_NO_DESCRIPTOR = LegacyTypeDescriptor()


@dataclass(frozen=True)
class Context:
    descriptor: LegacyTypeDescriptor = _NO_DESCRIPTOR
    path: str = ""

    def with_path(self, path: str) -> "Context":
        return Context(self.descriptor, path)


def is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    if isinstance(value, (int, float)):
        return value == 0
    return False


def proto_to_amino_json(value: Any, registry: TypeRegistry = DEFAULT_REGISTRY) -> Any:
    """Return the amino JSON form of `value`. The input is left untouched."""
    return _transform(Context(), value, registry)


def _transform(ctx: Context, value: Any, registry: TypeRegistry) -> Any:
    if isinstance(value, dict):
        if TYPE_FIELD in value:
            return _transform_typed(ctx, value, registry)
        return _transform_fields(ctx, value, registry)
    if isinstance(value, (list, tuple)):
        return [_transform(ctx, item, registry) for item in value]
    return _map_enum(ctx, value)


def _transform_typed(ctx: Context, obj: dict, registry: TypeRegistry) -> Any:
    descriptor = registry.lookup(obj[TYPE_FIELD])
    fields = {k: v for k, v in obj.items() if k != TYPE_FIELD}
    if descriptor.unregistered:
        return _transform(ctx, fields, registry)

    inner: Any = fields
    if descriptor.inline_field:
        if descriptor.inline_field not in fields:
            raise MissingInlineField(descriptor.name, descriptor.inline_field)
        inner = fields[descriptor.inline_field]
    return {
        "type": descriptor.name,
        "value": _transform(Context(descriptor), inner, registry),
    }


def _transform_fields(ctx: Context, obj: dict, registry: TypeRegistry) -> dict:
    out = {}
    descriptor = ctx.descriptor
    for key, val in obj.items():
        path = f"{ctx.path}/{key}"
        if is_empty(val) and descriptor.allow_empty != path:
            continue
        out[descriptor.field_renames.get(path, key)] = _transform(ctx.with_path(path), val, registry)
    return out


def _map_enum(ctx: Context, value: Any) -> Any:
    table = ctx.descriptor.enums.get(ctx.path)
    if table is None:
        return value
    if isinstance(value, str) and value in table:
        return table[value]
    raise EnumValueNotFound(ctx.descriptor.name, ctx.path, value)
