# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Mapping between element types and the field names used on the wire.

A dataclass element type declares which fields a query may reference. The
wire name of a field is ``metadata["json_name"]`` when present, otherwise the
attribute name after the naming policy::

    @dataclass
    class Movie:
        id: str
        release_date: date
        mpaa_rating: str = field(default="", metadata={"json_name": "rating"})

    ElementSchema.for_type(Movie).wire_name(("release_date",))  # "releaseDate"
    ElementSchema.for_type(Movie).wire_name(("mpaa_rating",))   # "rating"

Queries without an element type (``None`` or ``dict``) accept any field name
and send it unchanged.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

from ..core.errors import UnknownFieldError

JSON_NAME = "json_name"


def camel_case(name: str) -> str:
    """
    Convert a snake_case attribute name to camelCase.

    :param name: Attribute name.
    :type name: str
    :rtype: str
    """
    head, *rest = name.split("_")
    if not head:
        return name
    return head[:1].lower() + head[1:] + "".join(p[:1].upper() + p[1:] for p in rest)


def apply_naming(name: str, naming: Optional[str]) -> str:
    if naming == "camelCase":
        return camel_case(name)
    return name


_STR_ANNOTATIONS = {"str", "Optional[str]", "str|None", "None|str"}


def _is_str_annotation(annotation: Any) -> bool:
    """Return ``True`` for ``str``, ``Optional[str]`` and ``str | None``."""
    if annotation is str:
        return True
    if isinstance(annotation, str):
        return annotation.replace(" ", "") in _STR_ANNOTATIONS
    if typing.get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        return args == [str]
    return False


def _field_types(element_type: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(element_type)
    except (NameError, TypeError):
        # Unresolvable forward references; keep the raw annotations.
        return {f.name: f.type for f in dataclasses.fields(element_type)}


class ElementSchema:
    """
    Field map of a query element type.

    :param element_type: Dataclass type, ``dict`` or ``None``.
    :param naming: Naming policy, ``"camelCase"`` or ``None``.
    :type naming: str or None
    """

    def __init__(self, element_type: Optional[type] = None, naming: Optional[str] = "camelCase") -> None:
        if element_type is not None and element_type is not dict and not dataclasses.is_dataclass(element_type):
            raise TypeError("element_type must be a dataclass type, dict or None")
        self.element_type = element_type
        self.naming = naming
        self._wire: Dict[str, str] = {}
        self._required: Tuple[str, ...] = ()
        self._types: Dict[str, Any] = {}
        if self.typed:
            self._types = _field_types(element_type)
            required = []
            for f in dataclasses.fields(element_type):
                self._wire[f.name] = f.metadata.get(JSON_NAME) or apply_naming(f.name, naming)
                if f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                    required.append(f.name)
            self._required = tuple(required)
        self._attr = {wire: attr for attr, wire in self._wire.items()}

    @classmethod
    def for_type(cls, element_type: Optional[type], naming: Optional[str] = "camelCase") -> "ElementSchema":
        return cls(element_type, naming)

    @property
    def typed(self) -> bool:
        return self.element_type is not None and self.element_type is not dict

    @property
    def type_name(self) -> Optional[str]:
        return self.element_type.__name__ if self.typed else None

    def wire_name(self, path: Sequence[str], *, clause: Optional[str] = None) -> str:
        """
        Resolve a field path to its wire name.

        Navigation segments after the first are passed through the naming
        policy but are not checked.

        :param path: Field path, e.g. ``("owner", "name")``.
        :param clause: Clause being translated, reported on failure.
        :return: Wire name with navigation segments joined by ``/``.
        :rtype: str
        :raises ~Datasync.Client.core.errors.UnknownFieldError: If the first
            segment is not a field of the element type.
        """
        first, rest = path[0], list(path[1:])
        if not self.typed:
            return "/".join([first] + rest)
        try:
            head = self._wire[first]
        except KeyError:
            raise UnknownFieldError(".".join(path), element_type=self.type_name, clause=clause) from None
        return "/".join([head] + [apply_naming(p, self.naming) for p in rest])

    def is_string_field(self, path: Sequence[str]) -> bool:
        """
        Return ``True`` when ``path`` names a ``str`` field of the element type.

        ``Optional[str]`` counts as a string. Navigation paths and untyped
        schemas are never known to be strings.
        """
        if not self.typed or len(path) != 1:
            return False
        return _is_str_annotation(self._types.get(path[0]))

    def from_wire(self, item: Dict[str, Any]) -> Any:
        """
        Decode one wire item into the element type.

        Keys that do not belong to the element type are dropped; required
        fields the item does not carry are set to ``None``.
        """
        if not self.typed:
            return dict(item)
        kwargs = {self._attr[k]: v for k, v in item.items() if k in self._attr}
        return _construct(self.element_type, kwargs, self._required)


def _construct(cls: type, kwargs: Dict[str, Any], required: Sequence[str]) -> Any:
    for name in required:
        kwargs.setdefault(name, None)
    init_fields = {f.name for f in dataclasses.fields(cls) if f.init}
    return cls(**{k: v for k, v in kwargs.items() if k in init_fields})


def projection_decoder(
    columns: Sequence[Tuple[str, str]],
    into: Optional[type] = None,
) -> Callable[[Dict[str, Any]], Any]:
    """
    Build a decoder for projected items.

    :param columns: ``(output_name, wire_name)`` pairs in selection order.
    :param into: Dataclass receiving the output names as attributes, or ``None``
        to produce dicts keyed by output name.
    """
    if into is not None and into is not dict and not dataclasses.is_dataclass(into):
        raise TypeError("into must be a dataclass type, dict or None")
    required: Tuple[str, ...] = ()
    if into is not None and into is not dict:
        required = tuple(
            f.name
            for f in dataclasses.fields(into)
            if f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        )

    def decode(item: Dict[str, Any]) -> Any:
        values = {out: item.get(wire) for out, wire in columns}
        if into is None or into is dict:
            return values
        return _construct(into, values, required)

    return decode


__all__ = ["ElementSchema", "JSON_NAME", "camel_case", "projection_decoder"]
