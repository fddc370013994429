"""Helpers for locating and resolving DBRefs inside a document."""

from __future__ import annotations

from typing import Any, Callable, Iterator, Mapping, Optional, Union

from ..models import Code, DBRef, ObjectId

KeyPath = tuple[Union[str, int], ...]
Resolver = Callable[[str, ObjectId], Optional[Mapping[str, Any]]]


def iter_refs(document: Mapping[str, Any]) -> Iterator[tuple[KeyPath, DBRef]]:
    """Yield ``(key_path, ref)`` for every DBRef in a document, depth-first.

    Path components are keys for documents and indexes for arrays. DBRefs
    inside code scopes are reported under the code's key.

    Example:
        >>> oid = ObjectId.generate()
        >>> refs = list(iter_refs({"owner": {"ref": DBRef("users", oid)}}))
        >>> refs[0][0]
        ('owner', 'ref')
    """
    yield from _walk(document, ())


def _walk(value: Any, path: KeyPath) -> Iterator[tuple[KeyPath, DBRef]]:
    if isinstance(value, DBRef):
        yield path, value
    elif isinstance(value, Mapping):
        for key, child in value.items():
            yield from _walk(child, path + (key,))
    elif isinstance(value, (list, tuple)):
        for index, child in enumerate(value):
            yield from _walk(child, path + (index,))
    elif isinstance(value, Code) and value.scope is not None:
        yield from _walk(value.scope, path)


def resolve_refs(
    document: Mapping[str, Any], resolver: Resolver
) -> dict[KeyPath, Optional[Mapping[str, Any]]]:
    """Resolve every DBRef in a document through ``resolver``.

    The document itself is not modified.

    Returns:
        Mapping of key path to the resolved document (None if not found)
    """
    return {path: ref.dereference(resolver) for path, ref in iter_refs(document)}
