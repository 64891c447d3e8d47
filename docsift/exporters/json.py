"""Serialize a Document to its camelCase JSON wire form."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from docsift.document.models import Document, DocumentItem


def item_to_dict(item: DocumentItem) -> dict[str, Any]:
    """One item as a JSON-ready dict; unset fields are omitted."""
    return item.model_dump(mode="json", by_alias=True, exclude_none=True)


def export_content(document: Document) -> list[DocumentItem]:
    return document.content


def export_to_dict(
    document: Document,
    include_metadata: bool = True,
    transform: Callable[[DocumentItem], Any] | None = None,
) -> dict[str, Any]:
    """Build ``{"metadata": ..., "content": [...]}``.

    ``transform`` replaces the default per-item conversion when given.
    """
    output: dict[str, Any] = {}
    if include_metadata:
        output["metadata"] = document.metadata.to_dict()
    convert = transform or item_to_dict
    output["content"] = [convert(item) for item in document.content]
    return output


def export_json(
    document: Document,
    *,
    include_metadata: bool = True,
    indent: int | None = 2,
) -> str:
    """Render the document as a JSON string; ``indent=None`` gives compact output."""
    return json.dumps(
        export_to_dict(document, include_metadata),
        indent=indent,
        ensure_ascii=False,
    )
