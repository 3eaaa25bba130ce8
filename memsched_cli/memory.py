from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from .errors import InsufficientMemoryError
from .models import AllocationStrategy, MemoryBlock

logger = logging.getLogger(__name__)


class MemoryAllocator:
    """
    Contiguous memory made of fixed blocks.

    Blocks are laid out once at construction and are never split or merged:
    an allocation takes a whole block however little of it the process needs,
    and deallocation frees the whole block again.
    """

    def __init__(
        self,
        total_memory: int,
        strategy: AllocationStrategy = AllocationStrategy.FIRST_FIT,
        partitions: Optional[Sequence[int]] = None,
    ) -> None:
        if total_memory <= 0:
            raise ValueError(f"Total memory must be positive, got {total_memory}")

        sizes = list(partitions) if partitions else [total_memory]
        if any(size <= 0 for size in sizes):
            raise ValueError(f"Partition sizes must be positive: {sizes}")
        if sum(sizes) != total_memory:
            raise ValueError(
                f"Partitions {sizes} sum to {sum(sizes)}, expected total memory {total_memory}"
            )

        self.total_memory = total_memory
        self.strategy = AllocationStrategy(strategy)
        self._blocks: List[MemoryBlock] = []

        offset = 0
        for size in sizes:
            self._blocks.append(MemoryBlock(start=offset, size=size))
            offset += size

    @property
    def blocks(self) -> List[MemoryBlock]:
        return [replace(block) for block in self._blocks]

    @property
    def largest_block(self) -> int:
        return max(block.size for block in self._blocks)

    def can_ever_fit(self, size_needed: int) -> bool:
        return size_needed <= self.largest_block

    def block_of(self, pid: int) -> Optional[MemoryBlock]:
        for block in self._blocks:
            if block.owner == pid:
                return block
        return None

    def allocate(self, pid: int, size_needed: int) -> bool:
        return self._commit(pid, size_needed) is not None

    def require(self, pid: int, size_needed: int) -> MemoryBlock:
        """
        Like allocate(), but return the committed block or raise
        InsufficientMemoryError.
        """
        block = self._commit(pid, size_needed)
        if block is None:
            raise InsufficientMemoryError(pid, size_needed)
        return block

    def deallocate(self, pid: int) -> None:
        block = self.block_of(pid)
        if block is None:
            logger.debug("P%s owns no block; nothing to free", pid)
            return
        block.free = True
        block.owner = None
        logger.debug("Freed block @%d (size %d) from P%s", block.start, block.size, pid)

    def _commit(self, pid: int, size_needed: int) -> Optional[MemoryBlock]:
        if self.strategy is AllocationStrategy.FIRST_FIT:
            block = self._first_fit(size_needed)
        else:
            block = self._best_fit(size_needed)

        if block is None:
            logger.debug("%s found no block for P%s (needs %d)", self.strategy.label, pid, size_needed)
            return None

        block.free = False
        block.owner = pid
        logger.debug(
            "%s gave block @%d (size %d) to P%s (needs %d)",
            self.strategy.label,
            block.start,
            block.size,
            pid,
            size_needed,
        )
        return block

    def _first_fit(self, size_needed: int) -> Optional[MemoryBlock]:
        for block in self._blocks:
            if block.free and block.size >= size_needed:
                return block
        return None

    def _best_fit(self, size_needed: int) -> Optional[MemoryBlock]:
        best: Optional[MemoryBlock] = None
        for block in self._blocks:
            # Strict "<" keeps the lowest-start block among equal sizes.
            if block.free and block.size >= size_needed and (best is None or block.size < best.size):
                best = block
        return best
