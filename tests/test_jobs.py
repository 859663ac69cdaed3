"""
Tests for job variants and job identities.
"""

import pytest

from colony_kernel.config import ConfigError
from colony_kernel.jobs import JobDrop, JobHarvest, JobPickup, JobUnload
from colony_kernel.models.body import BodyPart
from colony_kernel.models.job import Prerequisite, job_id, parse_job_id
from colony_kernel.operations import execute_operations
from colony_kernel.world import Position, SiteKind

M, W, C = BodyPart.MOVE, BodyPart.WORK, BodyPart.CARRY


class TestJobIdentity:
    """Test identity strings."""

    def test_job_id_format(self):
        assert job_id("pickup", "c1", "all") == "job:pickup:c1:all"

    def test_parse_round_trip(self):
        assert parse_job_id("job:unload:e1:energy") == ("unload", "e1", ["energy"])

    def test_parse_malformed(self):
        assert parse_job_id("boss:harvest") is None
        assert parse_job_id("job::src1") is None

    def test_separator_in_component_rejected(self):
        with pytest.raises(ConfigError):
            job_id("harvest", "a:b")


class TestJobHarvest:
    """Test harvesting from a resource node."""

    @pytest.fixture
    def source(self, add_site):
        return add_site("src1", SiteKind.SOURCE, (10, 10), amount=3000)

    def test_identity(self, world, source):
        assert JobHarvest(source, world).id() == "job:harvest:src1"

    def test_base_body(self, world, source):
        assert JobHarvest(source, world).base_worker_body() == [W, C, M]

    def test_efficiency_accounts_for_travel_and_fill_time(self, world, source, add_worker):
        worker = add_worker("w1", (10, 12), body=[W, W, C, M])
        job = JobHarvest(source, world)
        # 50 free / (2 travel + ceil(50 / 4) fill)
        assert job.efficiency(worker) == pytest.approx(50 / 15)

    def test_worker_without_work_parts_is_useless(self, world, source, add_worker):
        worker = add_worker("w1", (10, 11), body=[C, M])
        assert JobHarvest(source, world).efficiency(worker) == 0

    def test_completion_tracks_cargo(self, world, source, add_worker):
        job = JobHarvest(source, world)
        assert job.completion(add_worker("w1", (10, 11))) == 0.0
        assert job.completion(add_worker("w2", (10, 11), carried=50)) == 1.0

    def test_satisfied_by_free_slots(self, world, source, add_worker):
        world.add_domain(
            "W1N1",
            walls=[p for p in source.pos.surrounding(1) if p != Position(10, 11)],
        )
        job = JobHarvest(source, world)
        assert not job.is_satisfied([])
        assert job.is_satisfied([add_worker("w1", (10, 11))])

    def test_destroyed_site_is_unsatisfiable(self, world, source, add_worker):
        worker = add_worker("w1", (10, 11))
        job = JobHarvest(source, world)
        world.remove_site("src1")
        assert job.completion(worker) == 1.0
        assert job.completion() == 1.0
        assert job.efficiency(worker) == 0

    def test_work_moves_then_harvests(self, world, source, add_worker):
        worker = add_worker("w1", (10, 12), body=[W, W, C, M])
        job = JobHarvest(source, world)

        execute_operations(job.work(worker))
        assert worker.pos == Position(10, 11)

        execute_operations(job.work(worker))
        assert worker.carried == 4
        assert source.amount == 2996


class TestJobPickup:
    """Test withdrawing from a store."""

    @pytest.fixture
    def container(self, add_site):
        return add_site("c1", SiteKind.CONTAINER, (5, 5), amount=100, capacity=2000)

    def test_identity_includes_resource(self, world, container):
        assert JobPickup(container, world).id() == "job:pickup:c1:all"

    def test_efficiency(self, world, container, add_worker):
        worker = add_worker("w1", (5, 7), body=[C, C, M])
        assert JobPickup(container, world).efficiency(worker) == pytest.approx(100 / 3)

    def test_satisfied_when_free_capacity_covers_stock(self, world, container, add_worker):
        worker = add_worker("w1", (5, 7), body=[C, C, M])
        job = JobPickup(container, world)
        assert job.is_satisfied([worker])
        container.amount = 150
        assert not job.is_satisfied([worker])

    def test_empty_store_is_complete(self, world, container, add_worker):
        worker = add_worker("w1", (5, 6))
        container.amount = 0
        assert JobPickup(container, world).completion(worker) == 1.0

    def test_work_withdraws(self, world, container, add_worker):
        worker = add_worker("w1", (5, 6), body=[C, C, M])
        execute_operations(JobPickup(container, world).work(worker))
        assert worker.carried == 100
        assert container.amount == 0


class TestJobUnload:
    """Test delivering into a store."""

    @pytest.fixture
    def extension(self, add_site):
        return add_site("e1", SiteKind.EXTENSION, (20, 20), amount=0, capacity=50)

    def test_empty_worker_must_collect_first(self, world, extension, add_worker):
        worker = add_worker("w1", (20, 21))
        job = JobUnload(extension, world)
        assert job.prerequisite(worker) == Prerequisite.COLLECT_ENERGY
        assert job.efficiency(worker) == 0

    def test_priority_fades_as_workers_cover_free_space(self, world, extension, add_worker):
        worker = add_worker("w1", (20, 21), carried=25)
        job = JobUnload(extension, world, priority=6)
        assert job.priority() == 6
        assert job.priority([worker]) == pytest.approx(3)

    def test_satisfied_when_cargo_covers_free_space(self, world, extension, add_worker):
        job = JobUnload(extension, world)
        assert not job.is_satisfied([])
        assert job.is_satisfied([add_worker("w1", (20, 21), carried=50)])

    def test_completion(self, world, extension, add_worker):
        job = JobUnload(extension, world)
        assert job.completion(add_worker("w1", (20, 21), carried=50)) == 0.0
        assert job.completion(add_worker("w2", (20, 21))) == 1.0
        extension.amount = 50
        assert job.completion(add_worker("w3", (20, 21), carried=50)) == 1.0

    def test_work_transfers(self, world, extension, add_worker):
        worker = add_worker("w1", (20, 21), carried=50)
        execute_operations(JobUnload(extension, world).work(worker))
        assert extension.amount == 50
        assert worker.carried == 0


class TestJobDrop:
    """Test dropping onto a container."""

    @pytest.fixture
    def container(self, add_site):
        return add_site("c1", SiteKind.CONTAINER, (5, 5), capacity=2000)

    def test_efficiency_penalizes_container_shuffling(self, world, container, add_site, add_worker):
        add_site("src1", SiteKind.SOURCE, (4, 4), amount=3000)
        add_site("c2", SiteKind.CONTAINER, (8, 8), capacity=2000)
        job = JobDrop(container, world)

        assert job.efficiency(add_worker("w1", (5, 5), carried=50, last_job_site="src1")) == 0.1
        assert job.efficiency(add_worker("w2", (5, 5), carried=50, last_job_site="c1")) == 0
        assert job.efficiency(add_worker("w3", (5, 5), carried=50, last_job_site="c2")) == 0
        assert job.efficiency(add_worker("w4", (5, 5))) == 0

    def test_work_drops_into_container(self, world, container, add_worker):
        worker = add_worker("w1", (5, 5), carried=50)
        execute_operations(JobDrop(container, world).work(worker))
        assert container.amount == 50
        assert worker.carried == 0

    def test_work_moves_onto_container(self, world, container, add_worker):
        worker = add_worker("w1", (5, 7), carried=50)
        execute_operations(JobDrop(container, world).work(worker))
        assert worker.pos == Position(5, 6)

    def test_only_takes_its_resource(self, world, container, add_worker):
        job = JobDrop(container, world, resource="H")
        assert job.id() == "job:drop:c1:H"

        energy = add_worker("w1", (5, 5), carried=50, last_job_site="min1")
        mineral = add_worker("w2", (5, 5), carried=50, resource="H", last_job_site="min1")
        assert job.efficiency(energy) == 0
        assert job.efficiency(mineral) == 0.1

    def test_does_not_mix_into_foreign_container(self, world, container, add_worker):
        container.amount = 100
        worker = add_worker("w1", (5, 5), carried=50, resource="H")
        execute_operations(JobDrop(container, world, resource="H").work(worker))
        assert (container.amount, container.resource) == (100, "energy")
        assert worker.carried == 0


class TestRegistryRebuild:
    """Test rebuilding jobs from persisted identities."""

    def test_rebuild_with_params(self, world, registry, add_site):
        add_site("e1", SiteKind.EXTENSION, (20, 20), capacity=50)
        job = registry.build_job("job:unload:e1:energy", world)
        assert isinstance(job, JobUnload)
        assert job.resource == "energy"
        assert job.id() == "job:unload:e1:energy"

    def test_rebuild_drop_resource(self, world, registry, add_site):
        add_site("c1", SiteKind.CONTAINER, (5, 5), capacity=2000)
        job = registry.build_job("job:drop:c1:H", world)
        assert isinstance(job, JobDrop)
        assert job.resource == "H"

    def test_missing_site_is_absent(self, world, registry):
        assert registry.build_job("job:harvest:gone", world) is None

    def test_unknown_kind_is_absent(self, world, registry, add_site):
        add_site("src1", SiteKind.SOURCE, (10, 10), amount=10)
        assert registry.build_job("job:teleport:src1", world) is None

    def test_malformed_is_absent(self, world, registry):
        assert registry.build_job("harvest-src1", world) is None
