from jobsearch.services.search import autocomplete_titles, rank_suggestions
from jobsearch.services.search.repository import TitleCandidate

from conftest import make_job


def _seed(repo):
    repo.jobs.extend([
        make_job("1", "Python Developer"),
        make_job("2", "Developer Advocate"),
        make_job("3", "Python Developer"),
        make_job("4", "Data Engineer"),
        make_job("5", "Devops Lead", moderation_status="PENDING"),
        make_job("6", "Developer Intern", status="INACTIVE"),
    ])


class TestRankSuggestions:
    def test_dedups_keeping_best_score(self):
        ranked = rank_suggestions(
            [TitleCandidate("Java Dev", 0.2), TitleCandidate("Java Dev", 0.7)], "java", limit=5
        )
        assert len(ranked) == 1
        assert ranked[0].score == 0.7

    def test_prefix_matches_first_then_score(self):
        ranked = rank_suggestions(
            [
                TitleCandidate("Senior Java Developer", 0.9),
                TitleCandidate("Java Architect", 0.3),
                TitleCandidate("Java Developer", 0.6),
            ],
            "Java",
            limit=5,
        )
        assert [s.title for s in ranked] == ["Java Developer", "Java Architect", "Senior Java Developer"]
        assert [s.is_prefix_match for s in ranked] == [True, True, False]

    def test_prefix_is_case_insensitive_and_literal(self):
        ranked = rank_suggestions([TitleCandidate("c++ Engineer", 1.0)], "C++", limit=5)
        assert ranked[0].is_prefix_match

    def test_fallback_order_uses_title(self):
        ranked = rank_suggestions(
            [TitleCandidate("Zeta Dev", 1.0), TitleCandidate("Alpha Dev", 1.0), TitleCandidate("Dev Lead", 1.0)],
            "dev",
            limit=5,
            by_score=False,
        )
        assert [s.title for s in ranked] == ["Dev Lead", "Alpha Dev", "Zeta Dev"]

    def test_limit(self):
        cands = [TitleCandidate(f"Job {i}", float(i)) for i in range(10)]
        assert len(rank_suggestions(cands, "job", limit=3)) == 3


class TestAutocompleteTitles:
    async def test_primary_path(self, repo):
        _seed(repo)
        result = await autocomplete_titles(repo, "dev", limit=10)
        titles = [s.title for s in result]
        assert titles[0] == "Developer Advocate"
        assert "Python Developer" in titles
        assert titles.count("Python Developer") == 1
        assert "Devops Lead" not in titles
        assert "Developer Intern" not in titles
        assert "autocomplete_titles_fallback" not in repo.calls

    async def test_primary_tolerates_one_typo(self, repo):
        _seed(repo)
        result = await autocomplete_titles(repo, "pythn", limit=10)
        assert [s.title for s in result] == ["Python Developer"]

    async def test_fallback_when_primary_unavailable(self, repo):
        _seed(repo)
        repo.fail_autocomplete = True
        result = await autocomplete_titles(repo, "Dev", limit=10)

        assert "autocomplete_titles_fallback" in repo.calls
        assert [s.title for s in result] == ["Developer Advocate", "Python Developer"]
        assert [s.is_prefix_match for s in result] == [True, False]
        assert all(s.score == 1.0 for s in result)

    async def test_fallback_escapes_regex_characters(self, repo):
        repo.jobs.append(make_job("1", "C++ Engineer"))
        repo.fail_autocomplete = True
        result = await autocomplete_titles(repo, "c++", limit=10)
        assert [s.title for s in result] == ["C++ Engineer"]

    async def test_both_paths_failing_returns_empty(self, repo):
        _seed(repo)
        repo.fail_autocomplete = True
        repo.fail_autocomplete_fallback = True
        assert await autocomplete_titles(repo, "dev", limit=10) == []

    async def test_blank_query(self, repo):
        _seed(repo)
        assert await autocomplete_titles(repo, "   ", limit=10) == []
        assert repo.calls == []


class TestCandidatePool:
    def _seed(self, repo):
        repo.jobs.extend([
            make_job("1", "Web Developer"),
            make_job("2", "Senior Developer"),
            make_job("3", "Developer Intern"),
        ])

    async def test_prefix_match_survives_a_small_pool(self, repo):
        self._seed(repo)
        result = await autocomplete_titles(repo, "dev", limit=1, candidate_limit=2)
        assert [(s.title, s.is_prefix_match) for s in result] == [("Developer Intern", True)]

    async def test_fallback_prefix_match_survives_a_small_pool(self, repo):
        self._seed(repo)
        repo.fail_autocomplete = True
        result = await autocomplete_titles(repo, "dev", limit=1, candidate_limit=1)
        assert [(s.title, s.is_prefix_match) for s in result] == [("Developer Intern", True)]
