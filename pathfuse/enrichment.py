"""Ranked hypergeometric testing across a whole group set."""

from __future__ import annotations

import logging
from functools import partial
from typing import Sequence

from pathfuse.core.groups import GroupSet
from pathfuse.core.types import Group, HypergeomResult
from pathfuse.parallel import parallel_map
from pathfuse.stats.hypergeom import ordered_hypergeometric

logger = logging.getLogger(__name__)


def _test_group(
    ranked: Sequence[str],
    background_size: int,
    group: Group,
) -> tuple[str, HypergeomResult | None]:
    return group.id, ordered_hypergeometric(ranked, background_size, group.members)


def enrichment_analysis(
    ranked: Sequence[str],
    groups: GroupSet,
    background_size: int,
    *,
    n_jobs: int = 1,
    backend: str = "loky",
) -> dict[str, HypergeomResult]:
    """Test every group against one ranking.

    Groups must already be restricted to the background. Degenerate groups
    are left out of the returned mapping, which otherwise follows the
    order of `groups`.
    """
    ranked = tuple(ranked)
    rows = parallel_map(
        partial(_test_group, ranked, int(background_size)),
        groups.groups(),
        n_jobs=n_jobs,
        backend=backend,
    )
    out = {gid: res for gid, res in rows if res is not None}
    n_skipped = len(rows) - len(out)
    if n_skipped:
        logger.debug("Skipped %d degenerate group(s) (empty or covering the whole background).", n_skipped)
    return out
