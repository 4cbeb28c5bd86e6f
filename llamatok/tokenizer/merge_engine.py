"""
Merge Engine
============
Greedy, priority-ordered BPE merging in O(n log n).

A plain implementation rescans the whole sequence after every merge to find
the lowest-ranked adjacent pair. Here every mergeable pair is pushed once
onto a min-heap, and the sequence lives in a doubly linked chain so a merge
only touches its immediate neighbours.

Key points:
- Priority key = rank + orig_pos / span. The integer part picks the merge
  rule, the fraction (always < 1) resolves equal ranks left to right.
- heapq has no delete or decrease-key, so a candidate is never removed. A
  node that changes is tombstoned instead and its candidates are dropped
  when popped.
- The node left of a merge is replaced by a fresh copy. That voids the
  queued (prev, left) candidate while the copy keeps the chain intact.

Usage:
    merged = merge_tokens(initial_ids, merge_table, prompt_length=len(text))
"""

import heapq
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .vocab import MergeTable


@dataclass(order=True)
class MergeCandidate:
    """Queued merge of a left node with whatever live node follows it."""
    priority: float
    left: int = field(compare=False)
    merged_id: int = field(compare=False)


class SegmentChain:
    """
    Arena of segment nodes, addressed by index.

    Node i is described by token_id[i], orig_pos[i], prev[i], next[i] and
    deleted[i]. Nodes are only ever appended, so an index stays valid for
    the lifetime of the chain even after the node is tombstoned.
    """

    def __init__(self, token_ids: Sequence[int]):
        n = len(token_ids)
        self.token_id: List[int] = [int(token_id) for token_id in token_ids]
        self.orig_pos: List[int] = list(range(n))
        self.prev: List[Optional[int]] = [None] + list(range(n - 1)) if n else []
        self.next: List[Optional[int]] = list(range(1, n)) + [None] if n else []
        self.deleted: List[bool] = [False] * n
        self.head: Optional[int] = 0 if n else None

    def add_node(
        self,
        token_id: int,
        orig_pos: int,
        prev_node: Optional[int],
        next_node: Optional[int]
    ) -> int:
        """Append a live node to the arena (links are not spliced). Returns its index."""
        self.token_id.append(token_id)
        self.orig_pos.append(orig_pos)
        self.prev.append(prev_node)
        self.next.append(next_node)
        self.deleted.append(False)
        return len(self.token_id) - 1

    def replace_with_copy(self, node: int) -> int:
        """Tombstone a node and splice an identical fresh copy into its place."""
        self.deleted[node] = True
        copy = self.add_node(self.token_id[node], self.orig_pos[node], self.prev[node], self.next[node])

        before = self.prev[copy]
        if before is None:
            self.head = copy
        else:
            self.next[before] = copy

        after = self.next[copy]
        if after is not None:
            self.prev[after] = copy
        return copy

    def token_ids(self) -> List[int]:
        """Token ids of the live chain, in order."""
        result = []
        node = self.head
        while node is not None:
            result.append(self.token_id[node])
            node = self.next[node]
        return result


def merge_tokens(
    token_ids: Sequence[int],
    merges: MergeTable,
    prompt_length: int
) -> List[int]:
    """
    Apply all merges to an initial token sequence.

    Args:
        token_ids: Initial per-character token ids
        merges: Merge table (ranks and merged ids)
        prompt_length: Code-point length of the original prompt (tie-breaking only)

    Returns:
        Fully merged token ids, in order
    """
    if len(token_ids) == 0:
        return []

    chain = SegmentChain(token_ids)
    # Begin token, preceding space and byte fallback can all push the
    # token count past the prompt length
    span = max(prompt_length, len(token_ids))
    queue: List[MergeCandidate] = []

    def push_candidate(left: int) -> None:
        right = chain.next[left]
        entry = merges.lookup(chain.token_id[left], chain.token_id[right])
        if entry is None:
            return
        rank, merged_id = entry
        priority = rank + chain.orig_pos[left] / span
        heapq.heappush(queue, MergeCandidate(priority, left, merged_id))

    for node in range(len(token_ids) - 1):
        push_candidate(node)

    while queue:
        candidate = heapq.heappop(queue)
        left = candidate.left
        right = chain.next[left]

        # Stale: this configuration was already changed by an earlier merge
        if chain.deleted[left] or right is None or chain.deleted[right]:
            continue

        chain.deleted[left] = True
        chain.deleted[right] = True

        before = chain.prev[left]
        if before is not None:
            before = chain.replace_with_copy(before)
        after = chain.next[right]

        result = chain.add_node(candidate.merged_id, chain.orig_pos[left], before, after)

        if before is None:
            chain.head = result
        else:
            chain.next[before] = result
            push_candidate(before)

        if after is not None:
            chain.prev[after] = result
            push_candidate(result)

    return chain.token_ids()
