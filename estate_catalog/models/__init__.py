"""Data models."""

from estate_catalog.models.property import (
    Currency,
    LookupItem,
    MediaAttachment,
    MetaItem,
    NamedRef,
    ParentRef,
    PersonSnapshot,
    PropertyCategory,
    PropertyRecord,
    PropertyStatus,
    RawPropertyInput,
    RecordKind,
    SubmitResult,
)

__all__ = [
    "Currency",
    "LookupItem",
    "MediaAttachment",
    "MetaItem",
    "NamedRef",
    "ParentRef",
    "PersonSnapshot",
    "PropertyCategory",
    "PropertyRecord",
    "PropertyStatus",
    "RawPropertyInput",
    "RecordKind",
    "SubmitResult",
]
