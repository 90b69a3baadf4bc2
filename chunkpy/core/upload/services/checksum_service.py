"""
CRC-32 checksum service.

Standard CRC-32 (IEEE 802.3, reflected, init 0xFFFFFFFF, final
complement) as produced by ``zlib.crc32``.
"""
from pathlib import Path
import zlib

import aiofiles


class ChecksumCalculator:
    """
    Computes CRC-32 over files without loading them into memory.
    
    Example:
        >>> calc = ChecksumCalculator()
        >>> await calc.calculate_file_crc(Path("merged.bin")) == calc.calculate(data)
        True
    """
    
    DEFAULT_BUFFER_SIZE = 64 * 1024
    
    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """
        Initialize calculator.
        
        Args:
            buffer_size: Read buffer in bytes
        """
        if buffer_size <= 0:
            raise ValueError("Buffer size must be positive")
        self._buffer_size = buffer_size
    
    @staticmethod
    def calculate(data: bytes) -> int:
        """Returns CRC-32 of in-memory bytes as an unsigned 32-bit int."""
        return zlib.crc32(data) & 0xFFFFFFFF
    
    async def calculate_file_crc(self, file_path: Path) -> int:
        """
        Stream a file through CRC-32.
        
        Args:
            file_path: File to checksum
            
        Returns:
            Unsigned 32-bit checksum
            
        Raises:
            OSError: If the file cannot be read
        """
        crc = 0
        async with aiofiles.open(file_path, 'rb') as f:
            while True:
                block = await f.read(self._buffer_size)
                if not block:
                    break
                crc = zlib.crc32(block, crc)
        return crc & 0xFFFFFFFF
