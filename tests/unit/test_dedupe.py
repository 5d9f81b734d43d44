"""Tests for cross-source deduplication."""

from src.core.schemas import RawJob, Salary
from src.pipeline.dedupe import deduplicate, title_similarity


def _job(job_id: str, **overrides: object) -> RawJob:
    defaults: dict[str, object] = {
        "id": job_id,
        "title": "Senior Python Engineer",
        "company": "Acme Corp",
        "location": "Austin, TX",
        "description": "Build things.",
        "url": f"https://example.com/{job_id}",
        "source": "indeed",
    }
    defaults.update(overrides)
    return RawJob(**defaults)  # type: ignore[arg-type]


class TestTitleSimilarity:
    def test_identical(self) -> None:
        assert title_similarity("python engineer", "python engineer") == 1.0

    def test_empty(self) -> None:
        assert title_similarity("", "python engineer") == 0.0

    def test_near_identical_above_threshold(self) -> None:
        assert title_similarity("senior python engineer", "senior python engineers") >= 0.9

    def test_different_below_threshold(self) -> None:
        assert title_similarity("python engineer", "sales manager") < 0.5


class TestDeduplicate:
    def test_no_duplicates(self) -> None:
        jobs = [_job("a"), _job("b", company="Globex"), _job("c", title="Data Scientist")]
        kept, removed = deduplicate(jobs)
        assert [j.id for j in kept] == ["a", "b", "c"]
        assert removed == 0

    def test_exact_normalized_match_across_sources(self) -> None:
        jobs = [
            _job("a", source="indeed"),
            _job("b", source="linkedin", title="senior python engineer!", company="ACME CORP"),
        ]
        kept, removed = deduplicate(jobs)
        assert [j.id for j in kept] == ["a"]
        assert removed == 1

    def test_fuzzy_title_match(self) -> None:
        jobs = [_job("a"), _job("b", title="Senior Python Engineers", source="linkedin")]
        kept, removed = deduplicate(jobs)
        assert len(kept) == 1
        assert removed == 1

    def test_fuzzy_respects_threshold(self) -> None:
        jobs = [_job("a"), _job("b", title="Senior Python Engineers", source="linkedin")]
        kept, _ = deduplicate(jobs, threshold=1.0)
        assert len(kept) == 2

    def test_same_title_different_company_kept(self) -> None:
        kept, removed = deduplicate([_job("a"), _job("b", company="Globex")])
        assert len(kept) == 2
        assert removed == 0

    def test_same_external_id_same_source(self) -> None:
        jobs = [
            _job("a", external_id="jk1"),
            _job("b", external_id="jk1", title="Completely Different Title"),
        ]
        kept, removed = deduplicate(jobs)
        assert [j.id for j in kept] == ["a"]
        assert removed == 1

    def test_external_id_scoped_by_source(self) -> None:
        jobs = [
            _job("a", external_id="1", source="indeed"),
            _job("b", external_id="1", source="linkedin", title="Other Role"),
        ]
        kept, _ = deduplicate(jobs)
        assert len(kept) == 2

    def test_richer_duplicate_replaces_kept_in_place(self) -> None:
        jobs = [
            _job("a"),
            _job("z", title="Data Scientist"),
            _job("b", source="linkedin", description="A much longer and more detailed description."),
        ]
        kept, removed = deduplicate(jobs)
        assert [j.id for j in kept] == ["b", "z"]
        assert removed == 1

    def test_salary_wins_over_longer_description(self) -> None:
        with_salary = _job("a", salary=Salary(min=100000, max=150000), description="x")
        longer = _job("b", source="linkedin", description="long " * 50)
        kept, _ = deduplicate([with_salary, longer])
        assert kept[0].id == "a"

    def test_never_grows(self) -> None:
        jobs = [_job(str(i)) for i in range(5)]
        kept, removed = deduplicate(jobs)
        assert len(kept) + removed == len(jobs)
        assert len(kept) == 1

    def test_empty(self) -> None:
        assert deduplicate([]) == ([], 0)
