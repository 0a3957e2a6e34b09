"""Retrospective thinning of implausibly dense shot clusters."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from shotsense.config import BurstPruneConfig
from shotsense.detect.models import ShotRecord

logger = logging.getLogger(__name__)


def _clusters(shots: Sequence[ShotRecord], window_ms: float) -> List[List[ShotRecord]]:
    clusters: List[List[ShotRecord]] = []
    for shot in shots:
        if clusters and shot.timestamp - clusters[-1][0].timestamp <= window_ms:
            clusters[-1].append(shot)
        else:
            clusters.append([shot])
    return clusters


def prune_bursts(
    shots: Sequence[ShotRecord], config: Optional[BurstPruneConfig] = None
) -> List[ShotRecord]:
    """Reduce bursts of shots to at most one per ``keep_interval_ms``.

    A cluster starts at a shot and collects every following shot within
    ``window_ms`` of it. Clusters smaller than ``min_cluster`` are kept as-is;
    larger ones keep their first shot and then each shot at least
    ``keep_interval_ms`` after the previously kept one.
    """
    cfg = config or BurstPruneConfig()
    kept: List[ShotRecord] = []
    for cluster in _clusters(sorted(shots, key=lambda s: s.timestamp), cfg.window_ms):
        if len(cluster) < cfg.min_cluster:
            kept.extend(cluster)
            continue
        thinned: List[ShotRecord] = []
        for shot in cluster:
            if not thinned or shot.timestamp - thinned[-1].timestamp >= cfg.keep_interval_ms:
                thinned.append(shot)
        kept.extend(thinned)
        logger.info(
            "Pruned burst of %d shots starting at t=%.0f down to %d",
            len(cluster),
            cluster[0].timestamp,
            len(thinned),
        )
    return kept
