"""Conflict resolution: merge documents from several roots into one registry."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Iterator

from utils import get_logger

from .types import AGENT_CATEGORIES, CapabilityDocument, CapabilityKind, OverrideDecision

logger = get_logger(__name__)


def _precedence(document: CapabilityDocument) -> tuple[int, int, str]:
    # Higher trust first, then earlier root, then path for a total order
    return (-document.trust_level, document.root_order, document.source_path.as_posix())


class CapabilityRegistry:
    """Resolved documents, at most one per (kind, id)."""

    def __init__(self, documents: Iterable[CapabilityDocument] = ()) -> None:
        self._documents: dict[CapabilityKind, dict[str, CapabilityDocument]] = {
            kind: {} for kind in CapabilityKind
        }
        for document in documents:
            bucket = self._documents[document.kind]
            if document.id in bucket:
                raise ValueError(f"Duplicate {document.kind.value} id: {document.id}")
            bucket[document.id] = document

    def get(self, kind: CapabilityKind, doc_id: str) -> CapabilityDocument | None:
        return self._documents[kind].get(doc_id)

    def documents(self, kind: CapabilityKind | None = None) -> list[CapabilityDocument]:
        kinds = [kind] if kind else list(CapabilityKind)
        results: list[CapabilityDocument] = []
        for k in kinds:
            bucket = self._documents[k]
            results.extend(bucket[doc_id] for doc_id in sorted(bucket))
        return results

    def agents_by_category(self) -> dict[str, list[CapabilityDocument]]:
        grouped: dict[str, list[CapabilityDocument]] = {c: [] for c in AGENT_CATEGORIES}
        for document in self.documents(CapabilityKind.AGENT):
            grouped.setdefault(document.category or "", []).append(document)
        return grouped

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._documents.values())

    def __iter__(self) -> Iterator[CapabilityDocument]:
        return iter(self.documents())


def resolve_conflicts(
    documents: Iterable[CapabilityDocument],
) -> tuple[CapabilityRegistry, list[OverrideDecision]]:
    """Pick one document per (kind, id) and log every override.

    The result depends only on trust levels, root order and paths, never on
    the order documents arrive in.
    """
    groups: dict[tuple[CapabilityKind, str], list[CapabilityDocument]] = defaultdict(list)
    for document in documents:
        groups[(document.kind, document.id)].append(document)

    winners: list[CapabilityDocument] = []
    overrides: list[OverrideDecision] = []
    for kind, doc_id in sorted(groups, key=lambda key: (key[0].value, key[1])):
        ranked = sorted(groups[(kind, doc_id)], key=_precedence)
        winner, shadowed = ranked[0], ranked[1:]
        winners.append(winner)
        if shadowed:
            decision = OverrideDecision(
                kind=kind,
                id=doc_id,
                winning_source_path=winner.source_path,
                shadowed_source_paths=tuple(doc.source_path for doc in shadowed),
            )
            logger.info(
                f"{kind.value} '{doc_id}': {winner.source_path} shadows "
                + ", ".join(str(p) for p in decision.shadowed_source_paths)
            )
            overrides.append(decision)

    return CapabilityRegistry(winners), overrides
