"""Wire-level records exchanged with the search backend.

Field names follow Python conventions; ``from_dict``/``to_dict`` translate
to and from the backend's camelCase JSON so payloads survive a round trip
field for field.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from semsearch.core.errors import ConfigurationError, InvalidResponseError

# Wire keys the ranking core interprets; everything else is payload.
_RESULT_FIELDS = {
    "uid": "uid",
    "similarity": "similarity",
    "rerankScore": "rerank_score",
    "contentType": "content_type",
    "locale": "locale",
}


class SearchMode(str, Enum):
    """Input channel of a search request."""

    TEXT = "text"
    SEMANTIC = "semantic"
    IMAGE = "image"
    HYBRID = "hybrid"

    @classmethod
    def parse(cls, value: str | SearchMode) -> SearchMode:
        """Parse a mode name.

        Raises:
            ConfigurationError: If the name is not a known mode
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            known = ", ".join(m.value for m in cls)
            raise ConfigurationError(
                f"Unknown search mode '{value}'. Expected one of: {known}"
            ) from None


def _optional_float(value: Any, key: str, uid: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidResponseError(f"Result {uid!r}: '{key}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidResponseError(
            f"Result {uid!r}: '{key}' must be a number, got {value!r}"
        ) from None


@dataclass(frozen=True)
class SearchResult:
    """One scored candidate returned by the backend.

    Attributes:
        uid: Stable identifier of the underlying entry or asset
        similarity: Embedding similarity score, higher is closer
        rerank_score: Score from the reranking stage, preferred for ordering
        content_type: Category label (text modality only)
        locale: Entry locale (text modality only)
        payload: All other attributes, passed through untouched
    """

    uid: str
    similarity: Optional[float] = None
    rerank_score: Optional[float] = None
    content_type: Optional[str] = None
    locale: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearchResult:
        """Build a result from one backend JSON object.

        Raises:
            InvalidResponseError: If the item is not an object, has no uid,
                or carries a non-numeric score
        """
        if not isinstance(data, Mapping):
            raise InvalidResponseError(
                f"Search result must be an object, got {type(data).__name__}"
            )
        uid = data.get("uid")
        if uid is None or uid == "":
            raise InvalidResponseError("Search result is missing 'uid'")
        uid = str(uid)

        payload = {k: v for k, v in data.items() if k not in _RESULT_FIELDS}
        return cls(
            uid=uid,
            similarity=_optional_float(data.get("similarity"), "similarity", uid),
            rerank_score=_optional_float(data.get("rerankScore"), "rerankScore", uid),
            content_type=data.get("contentType"),
            locale=data.get("locale"),
            payload=payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the backend's JSON shape."""
        data: Dict[str, Any] = {"uid": self.uid}
        for wire_key, attr in _RESULT_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                data[wire_key] = value
        data.update(self.payload)
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Look up an attribute by its wire name (e.g. ``title`` or ``rerankScore``)."""
        if key in _RESULT_FIELDS:
            value = getattr(self, _RESULT_FIELDS[key])
            return default if value is None else value
        return self.payload.get(key, default)

    @property
    def title(self) -> Optional[str]:
        return self.payload.get("title")


@dataclass(frozen=True)
class FusedSearchResult(SearchResult):
    """Result merged from the text and image channels of a hybrid search."""

    fused_score: float = 0.0
    text_score: Optional[float] = None
    image_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["fusedScore"] = self.fused_score
        data["textScore"] = self.text_score
        data["imageScore"] = self.image_score
        return data


@dataclass
class SearchResponse:
    """Envelope returned by every search endpoint."""

    success: bool
    results: List[SearchResult]
    search_type: str
    count: Optional[int] = None
    query: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    weights: Optional[Dict[str, float]] = None

    @classmethod
    def from_dict(
        cls, data: Any, default_search_type: str = "text"
    ) -> SearchResponse:
        """Parse and validate a search response body.

        Args:
            data: Decoded JSON body
            default_search_type: Modality tag to use when the body omits one

        Returns:
            SearchResponse instance

        Raises:
            InvalidResponseError: If ``success`` is not true or ``results``
                is missing or malformed
        """
        if not isinstance(data, Mapping):
            raise InvalidResponseError("Search response must be a JSON object")
        if data.get("success") is not True:
            reason = data.get("error") or data.get("message") or "success flag not set"
            raise InvalidResponseError(f"Search request failed: {reason}")
        raw_results = data.get("results")
        if not isinstance(raw_results, list):
            raise InvalidResponseError("Search response is missing a 'results' array")

        return cls(
            success=True,
            results=[SearchResult.from_dict(item) for item in raw_results],
            search_type=data.get("searchType") or default_search_type,
            count=data.get("count"),
            query=data.get("query"),
            metadata=dict(data.get("metadata") or {}),
            weights=data.get("weights"),
        )

    @property
    def reranked(self) -> bool:
        return bool(self.metadata.get("reranked", False))


@dataclass(frozen=True)
class ContentType:
    """Content type reference entity used to label and filter results."""

    uid: str
    title: str
    description: Optional[str] = None
    schema: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContentType:
        return cls(
            uid=str(data["uid"]),
            title=data.get("title") or str(data["uid"]),
            description=data.get("description"),
            schema=list(data.get("schema") or []),
        )


def content_type_display_name(
    content_type_uid: Optional[str], content_types: Sequence[ContentType]
) -> str:
    """Return the title for a content type uid, or the uid when unknown."""
    if not content_type_uid:
        return ""
    for content_type in content_types:
        if content_type.uid == content_type_uid:
            return content_type.title
    return content_type_uid


@dataclass(frozen=True)
class ImageUpload:
    """Image file sent to the upload search endpoints."""

    filename: str
    content: bytes
    mime_type: str

    @classmethod
    def from_path(cls, path: str | Path) -> ImageUpload:
        """Read an image from disk, guessing its MIME type from the suffix."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            mime_type=mime_type or "application/octet-stream",
        )

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ReindexParams:
    """Parameters for starting a reindex run."""

    environment: Optional[str] = None
    batch_size: Optional[int] = None
    content_types: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.environment:
            data["environment"] = self.environment
        if self.batch_size:
            data["batchSize"] = self.batch_size
        if self.content_types:
            data["contentTypes"] = list(self.content_types)
        return data


@dataclass
class ReindexProgress:
    """Snapshot of a running reindex job, as reported by the backend."""

    status: str
    processed: int = 0
    total: int = 0
    percentage: float = 0.0
    current_content_type: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    duration: Optional[float] = None

    TERMINAL_STATUSES = ("completed", "failed")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReindexProgress:
        if not isinstance(data, Mapping) or "status" not in data:
            raise InvalidResponseError("Reindex progress is missing 'status'")
        try:
            processed = int(data.get("processed") or 0)
            total = int(data.get("total") or 0)
            percentage = data.get("percentage")
            if percentage is None:
                percentage = (processed / total * 100) if total else 0.0
            percentage = float(percentage)
        except (TypeError, ValueError) as e:
            raise InvalidResponseError(f"Reindex progress has non-numeric counters: {e}") from e
        return cls(
            status=str(data["status"]),
            processed=processed,
            total=total,
            percentage=percentage,
            current_content_type=data.get("currentContentType"),
            errors=list(data.get("errors") or []),
            duration=data.get("duration"),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "processed": self.processed,
            "total": self.total,
            "percentage": self.percentage,
            "currentContentType": self.current_content_type,
            "errors": list(self.errors),
            "duration": self.duration,
        }


@dataclass
class ReindexStatus:
    """Index status returned when starting a reindex or querying the index."""

    success: bool
    status: str = "idle"
    message: Optional[str] = None
    index_stats: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReindexStatus:
        if not isinstance(data, Mapping):
            raise InvalidResponseError("Reindex status must be a JSON object")
        return cls(
            success=bool(data.get("success", False)),
            status=str(data.get("status") or "idle"),
            message=data.get("message"),
            index_stats=dict(data.get("indexStats") or {}),
        )


__all__ = [
    "ContentType",
    "FusedSearchResult",
    "ImageUpload",
    "ReindexParams",
    "ReindexProgress",
    "ReindexStatus",
    "SearchMode",
    "SearchResponse",
    "SearchResult",
    "content_type_display_name",
]
