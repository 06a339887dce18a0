from __future__ import annotations

"""Selection planner: turns a theme selection into an ordered question-id list.

Quotas are split across contributing sub-themes in proportion to their
deduplicated pool size. Counts are deterministic; only which questions are
drawn inside a sub-theme, and the final order, come from the random source.
"""

import random
from typing import Dict, List, Mapping, Optional, Sequence

from ..util.explain import trace as xtrace
from .errors import InsufficientPoolError
from .models import QuestionTypeFilter, Theme
from .pool import QuestionPool


def allocate_quotas(pools: Mapping[str, int], question_count: int) -> Dict[str, int]:
    """Split question_count across sub-themes proportionally to their pool sizes.

    Floors first, then hands the remainder out one by one to the largest
    pools, lower sub-theme id first on ties.
    """
    total = sum(int(n) for n in pools.values())
    if question_count > total:
        raise InsufficientPoolError(question_count, total)
    if question_count == total:
        return {sid: int(n) for sid, n in pools.items()}

    quotas = {sid: (question_count * int(n)) // total for sid, n in pools.items()}
    remainder = question_count - sum(quotas.values())
    for sid in sorted(pools, key=lambda s: (-int(pools[s]), s))[:remainder]:
        quotas[sid] += 1
    return quotas


class SelectionPlanner:
    def __init__(self, pool: QuestionPool, rng: Optional[random.Random] = None, seed: Optional[int] = None) -> None:
        self.pool = pool
        self.rng = rng if rng is not None else random.Random(seed)

    def collect_pools(
        self,
        themes: Sequence[Theme],
        question_type_filter: QuestionTypeFilter = QuestionTypeFilter.ALL,
    ) -> Dict[str, List[str]]:
        """Fetch ids per contributing sub-theme; a shared question stays with the first sub-theme."""
        seen: set[str] = set()
        pools: Dict[str, List[str]] = {}
        for theme in themes:
            if not theme.contributing:
                continue
            for st in theme.contributing_sub_themes():
                if st.id in pools:
                    continue
                fetched = self.pool.fetch_question_ids(st.id, st.question_count, question_type_filter)
                unique: List[str] = []
                for qid in fetched[: st.question_count]:
                    if qid in seen:
                        continue
                    seen.add(qid)
                    unique.append(qid)
                pools[st.id] = unique
        return pools

    def plan(
        self,
        themes: Sequence[Theme],
        question_count: int,
        question_type_filter: QuestionTypeFilter = QuestionTypeFilter.ALL,
    ) -> List[str]:
        if question_count <= 0:
            raise ValueError("question_count must be positive")
        pools = self.collect_pools(themes, question_type_filter)
        quotas = allocate_quotas({sid: len(ids) for sid, ids in pools.items()}, question_count)

        picked: List[str] = []
        for sid, ids in pools.items():
            quota = quotas.get(sid, 0)
            if quota >= len(ids):
                picked.extend(ids)
            elif quota > 0:
                picked.extend(self.rng.sample(ids, quota))
        self.rng.shuffle(picked)
        xtrace("plan_ready", {"requested": question_count, "quotas": quotas})
        return picked


def plan(
    themes: Sequence[Theme],
    question_count: int,
    question_type_filter: QuestionTypeFilter,
    pool: QuestionPool,
    *,
    seed: Optional[int] = None,
) -> List[str]:
    return SelectionPlanner(pool, seed=seed).plan(themes, question_count, question_type_filter)
