"""
Memory for the MCPU Virtual Machine
===================================

The machine has a single flat 256-byte address space and nothing else:
program bytes, data, the stack and the two register cells all live here.

Memory Map:
    $00-...   Program image (loaded at 0)
    ...-$FD   Stack, growing downward from $FD
    $FE       Stack pointer
    $FF       Program counter

The program and the stack are not separated. A deep enough stack walks
down into the program bytes.
"""

from mcpu.errors import LoadError
from mcpu.isa import MEMORY_SIZE


class Memory:
    """
    Byte-addressable memory with 8-bit addresses.

    Addresses and values are masked to 8 bits, so every access is valid.

    Attributes:
        size: Number of bytes (always 256 for the MCPU)
    """

    def __init__(self, size: int = MEMORY_SIZE):
        self.size = size
        self._data = bytearray(size)

    def __len__(self) -> int:
        return self.size

    def read(self, address: int) -> int:
        """Read byte at address."""
        return self._data[address % self.size]

    def write(self, address: int, value: int) -> None:
        """Write byte at address (value masked to 8 bits)."""
        self._data[address % self.size] = value & 0xFF

    def load(self, data: bytes, address: int = 0) -> None:
        """
        Copy a block of bytes into memory.

        Args:
            data: Bytes to copy
            address: Start address

        Raises:
            LoadError: If the block does not fit between address and the end
        """
        end = address + len(data)
        if address < 0 or end > self.size:
            raise LoadError(
                f"{len(data)} bytes at 0x{address:02X} do not fit in "
                f"{self.size} bytes of memory"
            )
        self._data[address:end] = data

    def read_bytes(self, address: int, count: int) -> bytes:
        """Read consecutive bytes, wrapping at the end of memory."""
        return bytes(self.read(address + i) for i in range(count))

    def snapshot(self) -> bytes:
        """Return a copy of the whole memory."""
        return bytes(self._data)

    def clear(self) -> None:
        """Zero all memory."""
        self._data[:] = bytes(self.size)
