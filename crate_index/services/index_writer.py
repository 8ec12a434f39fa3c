"""
Line-delimited encoding of index records: one compact JSON object per
version, each terminated by a newline, in the order supplied.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable

from crate_index.domain.index_utils import strip_nulls
from crate_index.domain.models import IndexRecord

logger = logging.getLogger(__name__)

# Keys dropped from the output when unset. Every other key is always written,
# with null for missing optional values (`links`, `target`).
OMIT_WHEN_NULL = frozenset({"features2", "rust_version", "v", "package"})


class IndexEncodingError(Exception):
    """Raised when index records cannot be turned into UTF-8 text."""


def record_to_dict(record: IndexRecord) -> Dict[str, Any]:
    return strip_nulls(record.model_dump(mode="json"), OMIT_WHEN_NULL)


def encode_record(record: IndexRecord) -> str:
    return json.dumps(record_to_dict(record), separators=(",", ":"), ensure_ascii=False)


def write_records(records: Iterable[IndexRecord]) -> bytes:
    """
    Encode records into the bytes of an index file.

    Raises IndexEncodingError if a record contains text that cannot be
    represented as UTF-8.
    """
    out = bytearray()
    for record in records:
        try:
            line = encode_record(record)
            out += line.encode("utf-8")
        except (TypeError, ValueError) as e:
            raise IndexEncodingError(
                f"Failed to serialize index metadata for {record.name}@{record.vers}"
            ) from e
        out += b"\n"
    return bytes(out)
