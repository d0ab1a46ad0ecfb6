import random

import pytest

from jobsearch.services.search.branches import assign_ranks, branch_limit, num_candidates
from jobsearch.services.search.fusion import RankedCandidate, filter_hits_by_radius, fuse
from jobsearch.services.search.repository import BranchHit
from jobsearch.services.search.tuning import SearchConfig


def _ranked(branch, *job_ids):
    return [
        RankedCandidate(job_id=j, branch=branch, score=1.0 / i, rank=i)
        for i, j in enumerate(job_ids, start=1)
    ]


class TestFuse:
    def test_worked_example(self):
        text = _ranked("text", "A", "B", "C")
        vector = _ranked("vector", "B", "A", "D")
        fused = fuse(text, vector, text_weight=0.4, vector_weight=0.6, k=60)

        assert [f.job_id for f in fused] == ["B", "A", "D", "C"]
        assert [f.rank for f in fused] == [1, 2, 3, 4]
        by_id = {f.job_id: f for f in fused}
        assert by_id["A"].rrf_score == pytest.approx(0.4 / 61 + 0.6 / 62)
        assert by_id["B"].rrf_score == pytest.approx(0.4 / 62 + 0.6 / 61)
        assert by_id["C"].rrf_score == pytest.approx(0.4 / 63)
        assert by_id["D"].rrf_score == pytest.approx(0.6 / 63)
        assert by_id["C"].vector_score is None
        assert by_id["D"].text_score is None

    def test_weights_need_not_sum_to_one(self):
        fused = fuse(_ranked("text", "A"), _ranked("vector", "B"), text_weight=1.0, vector_weight=1.0, k=60)
        assert fused[0].rrf_score == pytest.approx(1.0 / 61)

    def test_zero_weight_branch_contributes_nothing(self):
        fused = fuse(_ranked("text", "A", "B"), _ranked("vector", "B", "A"), 0.0, 0.6, k=60)
        assert [f.job_id for f in fused] == ["B", "A"]

    def test_vector_score_breaks_rrf_ties(self):
        text = [RankedCandidate("T", "text", 0.9, 1)]
        vector = [RankedCandidate("V", "vector", 0.2, 1)]
        fused = fuse(text, vector, text_weight=0.5, vector_weight=0.5, k=60)
        assert fused[0].rrf_score == fused[1].rrf_score
        assert [f.job_id for f in fused] == ["V", "T"]

    def test_text_score_then_id_break_remaining_ties(self):
        text = [
            RankedCandidate("b", "text", 0.5, 1),
            RankedCandidate("c", "text", 0.9, 1),
            RankedCandidate("a", "text", 0.5, 1),
        ]
        fused = fuse(text, [], text_weight=0.4, vector_weight=0.6, k=60)
        assert [f.job_id for f in fused] == ["c", "a", "b"]

    def test_order_is_independent_of_input_order(self):
        text = _ranked("text", *[f"t{i}" for i in range(30)])
        vector = _ranked("vector", *[f"t{i}" for i in range(15, 45)])
        expected = fuse(text, vector, 0.4, 0.6, k=60)
        rng = random.Random(7)
        for _ in range(5):
            t, v = text[:], vector[:]
            rng.shuffle(t)
            rng.shuffle(v)
            assert fuse(t, v, 0.4, 0.6, k=60) == expected

    def test_empty_inputs(self):
        assert fuse([], [], 0.4, 0.6, k=60) == []


class TestBranches:
    def test_branch_limit(self):
        cfg = SearchConfig()
        assert branch_limit(1, 10, cfg) == 500
        assert branch_limit(8, 50, cfg) == 500
        assert branch_limit(10, 50, cfg) == 600

    def test_num_candidates(self):
        cfg = SearchConfig()
        assert num_candidates(500, cfg) == 10000
        assert num_candidates(40, cfg) == 1000

    def test_assign_ranks_is_stable(self):
        hits = [BranchHit("x", 0.5), BranchHit("y", 0.9), BranchHit("z", 0.5)]
        ranked = assign_ranks(hits, "text")
        assert [(r.job_id, r.rank) for r in ranked] == [("y", 1), ("x", 2), ("z", 3)]
        assert all(r.branch == "text" for r in ranked)

    def test_radius_filter_applies_to_raw_hits(self):
        hits = [BranchHit("in", 1.0, 10.0, 10.0), BranchHit("out", 2.0, 50.0, 50.0)]
        kept = filter_hits_by_radius(hits, lambda h: h.latitude < 20)
        assert [h.job_id for h in kept] == ["in"]

    def test_deepest_page_keeps_branch_sizes_bounded(self):
        from pydantic import ValidationError

        from jobsearch.core import get_settings
        from jobsearch.schemas import SearchParams

        s = get_settings()
        cfg = SearchConfig.from_settings(s)
        deepest = SearchParams(query="python", page=s.max_page, size=s.max_page_size)
        limit = branch_limit(deepest.page, deepest.size, cfg)
        assert limit == s.max_page * s.max_page_size + cfg.branch_page_padding
        assert num_candidates(limit, cfg) == limit * cfg.num_candidates_factor
        with pytest.raises(ValidationError):
            SearchParams(query="python", page=s.max_page + 1, size=s.max_page_size)
