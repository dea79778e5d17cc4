from __future__ import annotations

from typing import Any, Iterable, Mapping

from .base import ArgSpec


class SchemaError(ValueError):
    pass


def args_to_json_schema(args: Iterable[ArgSpec]) -> dict[str, Any]:
    """Render ordered arg specs as a JSON-Schema object (property order preserved)."""
    props: dict[str, Any] = {}
    required: list[str] = []
    for a in args:
        prop: dict[str, Any] = {"type": a.type}
        if a.description:
            prop["description"] = a.description
        props[a.name] = prop
        if a.required:
            required.append(a.name)
    schema: dict[str, Any] = {"type": "object", "properties": props}
    if required:
        schema["required"] = required
    return schema


def args_from_json_schema(schema: Mapping[str, Any] | None) -> tuple[ArgSpec, ...]:
    """Build ordered arg specs from a JSON-Schema object.

    Supported subset:
    - type=object (or omitted)
    - properties (order taken from the mapping as given) + required
    """
    if schema is None:
        return ()
    if not isinstance(schema, Mapping):
        raise SchemaError("schema must be an object")

    st = schema.get("type", "object")
    if st != "object":
        raise SchemaError("only type=object schema is supported")

    props = schema.get("properties") or {}
    if not isinstance(props, Mapping):
        raise SchemaError("properties must be an object")

    required = schema.get("required") or []
    if not isinstance(required, list):
        raise SchemaError("required must be an array")

    out: list[ArgSpec] = []
    for name, prop in props.items():
        prop = prop if isinstance(prop, Mapping) else {}
        t = prop.get("type")
        desc = prop.get("description")
        out.append(
            ArgSpec(
                name=str(name),
                type=t if isinstance(t, str) and t else "any",
                required=name in required,
                description=desc if isinstance(desc, str) else "",
            )
        )
    return tuple(out)


def coerce_args(args: Iterable[ArgSpec | tuple[str, str] | str] | Mapping[str, Any] | None) -> tuple[ArgSpec, ...]:
    """Accept the shapes callers commonly pass at registration time.

    - a JSON-Schema mapping (`{"type": "object", "properties": {...}}`)
    - an iterable of ArgSpec, `(name, type)` pairs or bare names
    """
    if args is None:
        return ()
    if isinstance(args, Mapping):
        return args_from_json_schema(args)

    out: list[ArgSpec] = []
    for a in args:
        if isinstance(a, ArgSpec):
            out.append(a)
        elif isinstance(a, str):
            out.append(ArgSpec(name=a))
        elif isinstance(a, tuple) and len(a) == 2:
            out.append(ArgSpec(name=str(a[0]), type=str(a[1])))
        else:
            raise SchemaError(f"unsupported argument spec: {a!r}")
    return tuple(out)
