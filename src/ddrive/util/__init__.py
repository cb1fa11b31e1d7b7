from .ids import file_identity, new_job_id, new_unit_id, new_uuid
from .log import configure_logging
from .mime import classify_media, extension_of, is_os_metadata, is_previewable
from .time import now_utc, parse_timestamp, parse_timestamp_or_none

__all__ = [
    "new_uuid",
    "new_unit_id",
    "new_job_id",
    "file_identity",
    "configure_logging",
    "classify_media",
    "extension_of",
    "is_os_metadata",
    "is_previewable",
    "now_utc",
    "parse_timestamp",
    "parse_timestamp_or_none",
]
