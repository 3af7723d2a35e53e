"""Ranked hypergeometric test: best prefix of a ranked list for one group."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy.stats import hypergeom

from pathfuse.core.types import HypergeomResult


def ordered_hypergeometric(
    ranked: Sequence[str],
    background_size: int,
    members: frozenset[str] | set[str],
) -> HypergeomResult | None:
    """Find the ranked-list prefix with the smallest over-representation p-value.

    `members` must already be restricted to the background, and `ranked`
    must only hold background entities. The overlap count only changes at
    positions holding a group member, and for a fixed count the upper tail
    grows with the prefix length, so only those positions are evaluated.

    Returns None for degenerate groups (no members, or every background
    entity a member). A group with no member in `ranked` gets p = 1 and
    an empty overlap. Ties resolve to the shortest prefix.
    """
    n_total = int(background_size)
    n_members = len(members)
    if n_members == 0 or n_members >= n_total:
        return None

    hits = [i for i, entity in enumerate(ranked) if entity in members]
    if not hits:
        return HypergeomResult(p_value=1.0, prefix_length=0, overlap=())

    prefix = np.asarray(hits, dtype=np.int64) + 1
    k = np.arange(1, prefix.size + 1)
    # P(X >= k) for a draw of `prefix` entities
    tail = hypergeom.sf(k - 1, n_total, n_members, prefix)
    best = int(np.argmin(tail))
    overlap = tuple(ranked[i] for i in hits[: best + 1])
    return HypergeomResult(
        p_value=float(min(max(tail[best], 0.0), 1.0)),
        prefix_length=int(prefix[best]),
        overlap=overlap,
    )
