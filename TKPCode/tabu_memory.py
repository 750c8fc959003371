"""
tabu_memory

有界禁忌表: FIFO 队列 (deque) + 成员集合 (set)。
  - contains: O(1) 结构相等判定 (见 SolutionState.__eq__/__hash__)
  - insert:   已满时同时从队列与集合中淘汰最早的条目, 再写入新条目
不变量: len(queue) == len(set) <= capacity
"""

from collections import deque
from typing import Deque, Set

from .tkpopt import SolutionState


class TabuMemory:
    """最近访问解的有界记录, 防止搜索立即回到这些解"""

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError(f"tabu capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._queue: Deque[SolutionState] = deque()
        self._members: Set[SolutionState] = set()

    def contains(self, solution: SolutionState) -> bool:
        return solution in self._members

    __contains__ = contains

    def insert(self, solution: SolutionState) -> None:
        if self.capacity == 0:
            return
        if solution in self._members:
            # 重复写入会让队列与集合的长度失衡, 先移除旧位置再追加到队尾
            self._queue.remove(solution)
            self._members.discard(solution)
        if len(self._queue) == self.capacity:
            oldest = self._queue.popleft()
            self._members.discard(oldest)
        self._queue.append(solution)
        self._members.add(solution)

    def __len__(self) -> int:
        return len(self._queue)

    def oldest(self) -> SolutionState:
        return self._queue[0]

    def clear(self) -> None:
        self._queue.clear()
        self._members.clear()

    def __repr__(self):
        return f"<TabuMemory {len(self)}/{self.capacity}>"
