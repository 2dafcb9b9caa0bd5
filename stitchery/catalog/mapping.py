"""
Mapping of raw backing-store records into catalogue entities.

Records arrive as untyped key-value mappings. Depending on the client
used to read them, numbers may be ``int``, ``Decimal`` (boto3 resource
API), numeric strings (``NPage`` is stored as a zero-padded string) or
wire-typed values such as ``{"N": "12"}`` (low-level client). Every
field is coerced here; nothing outside this module sees a raw record.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..config import DEFAULT_CDN_BASE_URL
from .schemas import Collection, Item
from .urls import download_url, image_url


def _unwrap(value: Any) -> Any:
    """Strip a DynamoDB type descriptor (``{"N": "1"}``) if present.

    ``NULL`` and any other descriptor or nested map count as absent.
    """
    if isinstance(value, Mapping):
        if len(value) == 1:
            key = next(iter(value))
            if key in ("N", "S"):
                return value[key]
        return None
    return value


def _to_int(value: Any) -> int:
    """Coerce a raw attribute to ``int``; absent or malformed values give 0."""
    value = _unwrap(value)
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, (float, Decimal)):
            return int(value)
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return 0
            return int(Decimal(text))
    except (ValueError, InvalidOperation, OverflowError):
        return 0
    return 0


def _to_str(value: Any) -> str:
    value = _unwrap(value)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _to_optional_str(value: Any) -> Optional[str]:
    text = _to_str(value)
    return text or None


def map_item(record: Mapping[str, Any], cdn_base_url: str = DEFAULT_CDN_BASE_URL) -> Optional[Item]:
    """Convert a raw design record into an ``Item``.

    Parameters
    ----------
    record : Mapping[str, Any]
        A record of entity type ``DESIGN`` as returned by the backing store.
    cdn_base_url : str
        Base URL used to derive image and PDF locations when the record
        does not store them.

    Returns
    -------
    Optional[Item]
        The mapped item, or ``None`` when the record has no positive
        ``DesignID``.
    """
    item_id = _to_int(record.get("DesignID"))
    if item_id <= 0:
        return None
    collection_id = _to_int(record.get("AlbumID"))
    return Item(
        item_id=item_id,
        collection_id=collection_id,
        caption=_to_str(record.get("Caption")),
        description=_to_str(record.get("Description")),
        notes=_to_str(record.get("Notes")),
        text=_to_str(record.get("Text")),
        width=_to_int(record.get("Width")),
        height=_to_int(record.get("Height")),
        color_count=_to_int(record.get("NColors")),
        download_count=_to_int(record.get("NDownloaded")),
        page_within_collection=_to_int(record.get("NPage")),
        global_page_ordinal=_to_int(record.get("NGlobalPage")),
        image_url=(
            _to_optional_str(record.get("ImageUrl"))
            or image_url(collection_id, item_id, cdn_base_url)
        ),
        download_url=(
            _to_optional_str(record.get("PdfUrl"))
            or download_url(collection_id, item_id, cdn_base_url)
        ),
    )


def map_collection(record: Mapping[str, Any]) -> Optional[Collection]:
    """Convert a raw album record into a ``Collection``.

    Records without a positive ``AlbumID`` or without a caption are
    rejected with ``None``.
    """
    collection_id = _to_int(record.get("AlbumID"))
    caption = _to_str(record.get("Caption"))
    if collection_id <= 0 or not caption:
        return None
    return Collection(collection_id=collection_id, caption=caption)


def _ordinal_problems(label: str, values: List[int]) -> List[str]:
    problems: List[str] = []
    counts = Counter(values)
    duplicates = sorted(v for v, n in counts.items() if n > 1)
    if duplicates:
        problems.append(f"{label}: duplicate ordinals {duplicates[:10]}")
    missing = sorted(set(range(1, len(values) + 1)) - set(counts))
    if missing:
        problems.append(f"{label}: ordinals not dense, missing {missing[:10]}")
    return problems


def check_ordinals(items: Iterable[Item]) -> List[str]:
    """Check that positional ordinals are unique and dense.

    ``global_page_ordinal`` must run 1..N over the whole catalogue and
    ``page_within_collection`` 1..M inside each collection. The listing
    order relies on both. Problems are reported, not fixed.

    Returns
    -------
    List[str]
        One human-readable line per problem; empty when the data is sound.
    """
    global_ordinals: List[int] = []
    by_collection: Dict[int, List[int]] = defaultdict(list)
    for item in items:
        global_ordinals.append(item.global_page_ordinal)
        by_collection[item.collection_id].append(item.page_within_collection)

    problems = _ordinal_problems("global_page_ordinal", global_ordinals)
    for collection_id in sorted(by_collection):
        problems.extend(
            _ordinal_problems(
                f"page_within_collection[collection {collection_id}]",
                by_collection[collection_id],
            )
        )
    return problems
