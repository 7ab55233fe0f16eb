"""
CertificateGraph — arena owning the working set and its issuance links.

Records are addressed by their index in the arena. Parent/child links are
stored as insertion-ordered index sets (dicts with None values), so:

  - links are deduplicated (adding an existing edge is a no-op)
  - iteration follows edge insertion order, which makes traversals deterministic
  - no link ever holds a reference to a record, only its index

An edge P → C (P issued C) exists iff C ∈ children[P] and P ∈ parents[C].
add_edge/remove_edge always update both sides.

The arena may only shrink (duplicate pruning) while it holds no edges.
The first add_edge seals it; removing records afterwards raises RuntimeError
because existing indices would silently point at the wrong certificates.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from cert_hierarchy.domain.models import CertificateRecord

type Edge = tuple[int, int]


class CertificateGraph:
    """Ordered arena of certificate records with parent/child index links."""

    def __init__(self, records: Iterable[CertificateRecord] = ()) -> None:
        self._records: list[CertificateRecord] = list(records)
        self._children: list[dict[int, None]] = [{} for _ in self._records]
        self._parents: list[dict[int, None]] = [{} for _ in self._records]
        self._sealed = False

    # ──────────────────────── Records ────────────────────────

    @property
    def records(self) -> Sequence[CertificateRecord]:
        return tuple(self._records)

    @property
    def sealed(self) -> bool:
        """True once any edge has been created; the record list is frozen from then on."""
        return self._sealed

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CertificateRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> CertificateRecord:
        return self._records[index]

    def index_of(self, record: CertificateRecord) -> int:
        """Index of a record by identity (not equality)."""
        for index, candidate in enumerate(self._records):
            if candidate is record:
                return index
        raise ValueError(f"Record {record.location} is not part of this graph")

    def remove_record(self, index: int) -> CertificateRecord:
        """
        Drop a record from the arena, shifting later indices down by one.

        Only allowed before the first edge is created.
        """
        if self._sealed:
            raise RuntimeError(
                "Cannot remove records once issuance links exist: "
                "indices held by the link sets would be invalidated"
            )
        del self._children[index]
        del self._parents[index]
        return self._records.pop(index)

    # ──────────────────────── Edges ────────────────────────

    def add_edge(self, parent: int, child: int) -> bool:
        """Record that `parent` issued `child`. Returns False if the edge already existed."""
        self._sealed = True
        if child in self._children[parent]:
            return False
        self._children[parent][child] = None
        self._parents[child][parent] = None
        return True

    def remove_edge(self, parent: int, child: int) -> None:
        """Remove the edge parent → child from both link sets. KeyError if absent."""
        del self._children[parent][child]
        del self._parents[child][parent]

    def has_edge(self, parent: int, child: int) -> bool:
        return child in self._children[parent]

    def children_of(self, index: int) -> Sequence[int]:
        return tuple(self._children[index])

    def parents_of(self, index: int) -> Sequence[int]:
        return tuple(self._parents[index])

    def child_count(self, index: int) -> int:
        return len(self._children[index])

    def parent_count(self, index: int) -> int:
        return len(self._parents[index])

    def iter_children(self, index: int) -> Iterator[int]:
        """Live iterator over children, in insertion order. Do not mutate while iterating."""
        return iter(self._children[index])

    @property
    def edge_count(self) -> int:
        return sum(len(children) for children in self._children)

    def edges(self) -> list[Edge]:
        """All edges as (parent, child) pairs, by parent index then insertion order."""
        return [
            (parent, child)
            for parent, children in enumerate(self._children)
            for child in children
        ]

    def roots(self) -> list[int]:
        """Indices of records that no other record in the graph issued."""
        return [index for index, parents in enumerate(self._parents) if not parents]

    def describe(self, indices: Iterable[int]) -> str:
        """Render a sequence of record indices as `a -> b -> c` using their locations."""
        return " -> ".join(self._records[index].location for index in indices)
