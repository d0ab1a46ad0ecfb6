import logging

import pytest

from jobsearch.schemas import MapBounds, MapFilters
from jobsearch.services.errors import MapQueryError, SearchStage
from jobsearch.services.map import ClusterConfig, find_jobs_in_bounds, get_map_clusters

from conftest import make_job

VIEWPORT = MapBounds(sw_lat=20.0, sw_lng=105.0, ne_lat=22.0, ne_lng=107.0)


def _job_at(job_id, lat, lng, **kw):
    return make_job(job_id, f"Job {job_id}", latitude=lat, longitude=lng, **kw)


class TestFindJobsInBounds:
    async def test_only_approved_active_jobs_inside_box(self, repo):
        repo.jobs.extend([
            _job_at("in", 21.0, 106.0, company_name="Acme", min_salary=100),
            _job_at("outside", 25.0, 106.0),
            _job_at("pending", 21.0, 106.0, moderation_status="PENDING"),
            _job_at("inactive", 21.0, 106.0, status="INACTIVE"),
            make_job("no-coords", "Remote job"),
        ])
        points = await find_jobs_in_bounds(repo, VIEWPORT, None, limit=50)
        assert [p.id for p in points] == ["in"]
        assert points[0].company.name == "Acme"
        assert points[0].min_salary == 100
        assert points[0].type == "FULL_TIME"

    async def test_filters_and_limit(self, repo):
        for i in range(10):
            repo.jobs.append(_job_at(f"r{i}", 21.0, 106.0, work_type="REMOTE"))
        repo.jobs.append(_job_at("onsite", 21.0, 106.0))
        points = await find_jobs_in_bounds(repo, VIEWPORT, MapFilters(work_type="REMOTE"), limit=4)
        assert len(points) == 4
        assert all(p.work_type == "REMOTE" for p in points)

    async def test_store_failure(self, repo):
        repo.fail_points = True
        with pytest.raises(MapQueryError):
            await find_jobs_in_bounds(repo, VIEWPORT, None, limit=50)

    async def test_service_caps_points(self, repo, service):
        for i in range(70):
            repo.jobs.append(_job_at(f"j{i:02d}", 21.0, 106.0))
        assert len(await service.map_points(VIEWPORT, None, limit=500)) == 50


class TestGetMapClusters:
    async def test_single_job_viewport_has_no_clusters(self, repo):
        repo.jobs.append(_job_at("only", 21.0, 106.0))
        resp = await get_map_clusters(repo, VIEWPORT, zoom=6, filters=None)
        assert resp.data == []
        assert resp.fallback is False
        assert resp.bucket_count == 4

    async def test_clusters_dense_areas(self, repo):
        for i in range(6):
            repo.jobs.append(_job_at(f"west-{i}", 21.0, 105.5))
        for i in range(6):
            repo.jobs.append(_job_at(f"east-{i}", 21.5, 106.5))
        resp = await get_map_clusters(repo, VIEWPORT, zoom=3, filters=None)
        assert resp.bucket_count == 2
        assert sorted(c.count for c in resp.data) == [6, 6]
        assert all(c.type == "cluster" for c in resp.data)
        west = min(resp.data, key=lambda c: c.longitude)
        assert west.longitude == pytest.approx(105.5)
        assert sorted(west.job_ids) == sorted(f"west-{i}" for i in range(6))

    async def test_filters_apply_to_clusters(self, repo):
        for i in range(3):
            repo.jobs.append(_job_at(f"it-{i}", 21.0, 106.0))
            repo.jobs.append(_job_at(f"law-{i}", 21.0, 106.0, category="LAW"))
        resp = await get_map_clusters(repo, VIEWPORT, zoom=3, filters=MapFilters(category="LAW"))
        assert sum(c.count for c in resp.data) == 3

    async def test_falls_back_to_points_on_failure(self, repo):
        repo.fail_coordinates = True
        for i in range(120):
            repo.jobs.append(_job_at(f"j{i:03d}", 21.0, 106.0))
        resp = await get_map_clusters(repo, VIEWPORT, zoom=9, filters=None, config=ClusterConfig())
        assert resp.fallback is True
        assert len(resp.data) == 100
        first = resp.data[0]
        assert first.type == "point"
        assert first.count == 1
        assert first.job_ids == [first.job_id]
        assert first.title

    async def test_fallback_failure_is_surfaced(self, repo):
        repo.fail_coordinates = True
        repo.fail_points = True
        with pytest.raises(MapQueryError):
            await get_map_clusters(repo, VIEWPORT, zoom=9, filters=None)

    async def test_fallback_is_logged_with_the_cluster_stage(self, repo, caplog):
        repo.fail_coordinates = True
        repo.jobs.append(_job_at("only", 21.0, 106.0))
        with caplog.at_level(logging.WARNING, logger="jobsearch.services.map.map_logic"):
            await get_map_clusters(repo, VIEWPORT, zoom=9, filters=None)
        assert any(SearchStage.CLUSTER.value in r.getMessage() for r in caplog.records)
