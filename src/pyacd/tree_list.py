"""
Tree-list scaling.

Records representing many trees per hectare are split into sub-records of
at most ``threshold`` trees per hectare so that ranked competition resolves
within-cohort differences. Sub-records receive a small diameter (and
height) jitter so they do not tie. After a simulation the sub-records are
collapsed back into one density-weighted record per original tree.

Both operations return a new list, but the Tree objects in it are shared
with the input. Expansion lowers the density of each expanded original in
place and collapse merges sub-records into the first one. Callers that need
the records unchanged must copy them first.
"""
import copy
import math
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .logging_config import get_logger, log_tree_list_scaling

logger = get_logger(__name__)

__all__ = [
    'EXPANSION_THRESHOLD',
    'JITTER_HALF_WIDTH',
    'make_rng',
    'expand_tree_list',
    'collapse_tree_list',
    'find_max_tree_id',
]

EXPANSION_THRESHOLD = 50.0
JITTER_HALF_WIDTH = 0.005

RandomSource = Union[None, int, np.random.Generator]


def make_rng(random_state: RandomSource = None) -> np.random.Generator:
    """Return a numpy Generator from a seed, an existing generator or None."""
    if isinstance(random_state, np.random.Generator):
        return random_state
    return np.random.default_rng(random_state)


def _jittered_copy(tree, expand_id: int, tph: float, rng: np.random.Generator):
    new_tree = copy.copy(tree)
    new_tree.expand_id = expand_id
    new_tree.dbh += float(rng.uniform(-JITTER_HALF_WIDTH, JITTER_HALF_WIDTH))
    if new_tree.height > 0.0:
        new_tree.height += float(rng.uniform(-JITTER_HALF_WIDTH, JITTER_HALF_WIDTH))
        if new_tree.hcb > new_tree.height:
            new_tree.hcb = new_tree.height
    new_tree.tph = tph
    new_tree.compute_attributes()
    return new_tree


def expand_tree_list(trees: Sequence, threshold: float = EXPANSION_THRESHOLD,
                     rng: Optional[np.random.Generator] = None) -> List:
    """Split records above ``threshold`` trees per hectare.

    A record of density D > threshold yields floor(D / threshold) - 1 copies
    of exactly ``threshold`` (expand ids 1..n), a remainder copy if the
    division is uneven, and keeps ``threshold`` itself under the next
    expand id. Originals keep their list position; copies are appended.

    Args:
        trees: Tree records
        threshold: Maximum density per record
        rng: Generator for the jitter draws

    Returns:
        New list of records; expanded originals are updated in place
    """
    rng = make_rng(rng)
    expanded = list(trees)
    extras = []

    for tree in trees:
        if not tree.tph > threshold:
            continue

        n_new = int(math.floor(tree.tph / threshold)) - 1
        cum_tph = threshold
        expand_id = 0
        for _ in range(n_new):
            expand_id += 1
            extras.append(_jittered_copy(tree, expand_id, threshold, rng))
            cum_tph += threshold

        if cum_tph < tree.tph:
            expand_id += 1
            extras.append(_jittered_copy(tree, expand_id, tree.tph - cum_tph, rng))

        tree.tph = threshold
        tree.expand_id = expand_id + 1
        tree.compute_attributes()

    expanded.extend(extras)
    log_tree_list_scaling(logger, 'expanded', len(trees), len(expanded))
    return expanded


def collapse_tree_list(trees: Sequence) -> List:
    """Merge expansion sub-records back into one record per original tree.

    The first sub-record of each (plot_id, tree_id) group accumulates the
    density-weighted dbh, height, crown base and crown ratio of the group.
    Merged-away sub-records and every record without density are dropped.

    Returns:
        New list of records
    """
    groups: Dict[Tuple[int, int], list] = {}
    for tree in trees:
        if tree.expand_id > 0:
            groups.setdefault((tree.plot_id, tree.tree_id), []).append(tree)

    for members in groups.values():
        head = members[0]
        total_tph = head.tph
        dbh = head.dbh * head.tph
        height = head.height * head.tph
        hcb = head.hcb * head.tph
        crown_ratio = head.crown_ratio * head.tph

        for other in members[1:]:
            total_tph += other.tph
            dbh += other.dbh * other.tph
            height += other.height * other.tph
            hcb += other.hcb * other.tph
            crown_ratio += other.crown_ratio * other.tph
            other.tph = 0.0
            other.expand_id = -1

        head.tph = total_tph
        if total_tph > 0.0:
            head.dbh = dbh / total_tph
            head.height = height / total_tph
            head.hcb = hcb / total_tph
            head.crown_ratio = crown_ratio / total_tph
            head.expand_id = 0
            head.compute_attributes()

    collapsed = [t for t in trees if t.tph != 0.0]
    log_tree_list_scaling(logger, 'collapsed', len(trees), len(collapsed))
    return collapsed


def find_max_tree_id(trees: Sequence) -> int:
    return max((t.tree_id for t in trees), default=0)
