"""
Operation result type.

Public operations report success or failure as a value instead of
letting exceptions cross the component boundary.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .exceptions import ChunkUploadError

T = TypeVar('T')


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of an operation.
    
    Exactly one of ``value`` (on success) or ``error`` (on failure) is
    meaningful.
    
    Example:
        >>> result = await service.complete(request)
        >>> if result.is_success:
        ...     print(result.value.checksum)
        ... else:
        ...     print(result.error.kind)
    """
    value: Optional[T] = None
    error: Optional[ChunkUploadError] = None
    
    @property
    def is_success(self) -> bool:
        return self.error is None
    
    @property
    def is_failure(self) -> bool:
        return self.error is not None
    
    def unwrap(self) -> T:
        """
        Return the value or raise the carried error.
        
        Raises:
            ChunkUploadError: If the result is a failure
        """
        if self.error is not None:
            raise self.error
        return self.value
    
    @classmethod
    def succeed(cls, value: Optional[T] = None) -> 'Result[T]':
        return cls(value=value)
    
    @classmethod
    def fail(cls, error: ChunkUploadError) -> 'Result[T]':
        return cls(error=error)
