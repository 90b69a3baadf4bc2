"""
Data models for the blob storage capability.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Any


@dataclass(frozen=True)
class UploadOptions:
    """
    Options passed to a blob store upload.
    
    Attributes:
        file_name: Blob name (may contain '/' separated directories)
        directory: Optional target directory
        content_type: Optional MIME type
        metadata: Optional user metadata forwarded to the store
    """
    file_name: str
    directory: Optional[str] = None
    content_type: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class BlobDescriptor:
    """
    Metadata returned by a blob store after a successful upload.
    
    Attributes:
        name: Blob name without directory
        full_name: Blob name relative to the store root
        length: Size in bytes
        content_type: MIME type
        last_modified: Last write time (UTC)
        metadata: User metadata
    """
    name: str
    full_name: str
    length: int
    content_type: Optional[str] = None
    last_modified: Optional[datetime] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to transport (camelCase) format."""
        return {
            'name': self.name,
            'fullName': self.full_name,
            'length': self.length,
            'contentType': self.content_type,
            'lastModified': self.last_modified.isoformat() if self.last_modified else None,
            'metadata': dict(self.metadata),
        }
