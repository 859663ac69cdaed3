"""
Tests for the simulated world primitives.
"""

from colony_kernel.models.body import BodyPart
from colony_kernel.sim import SimWorld
from colony_kernel.world import Position, ResultCode, SiteKind

from conftest import DOMAIN

M, W, C = BodyPart.MOVE, BodyPart.WORK, BodyPart.CARRY


class TestMovement:
    """Test one-step movement."""

    def test_arrived(self, world, add_site, add_worker):
        site = add_site("c1", SiteKind.CONTAINER, (5, 5))
        assert world.move_toward(add_worker("w1", (5, 6)), site) == ResultCode.ARRIVED

    def test_blocked_by_walls(self, world, add_site, add_worker):
        site = add_site("c1", SiteKind.CONTAINER, (5, 5))
        worker = add_worker("w1", (5, 8))
        world.add_domain(DOMAIN, walls=[(4, 7), (5, 7), (6, 7)])
        assert world.move_toward(worker, site) == ResultCode.BLOCKED
        assert worker.pos == Position(5, 8)

    def test_immobile_worker(self, world, add_site, add_worker):
        site = add_site("c1", SiteKind.CONTAINER, (5, 5))
        assert world.move_toward(add_worker("w1", (5, 9), body=[W, C]), site) == ResultCode.INVALID_ARGS


class TestSpawn:
    """Test manufacturing."""

    def test_not_enough_resources(self, world, add_site):
        spawn = add_site("s1", SiteKind.SPAWN, (25, 25), amount=100, capacity=300)
        assert world.spawn(spawn, [W, C, M], "x") == ResultCode.NOT_ENOUGH_RESOURCES

    def test_spends_spawn_then_extensions(self, world, add_site):
        spawn = add_site("s1", SiteKind.SPAWN, (25, 25), amount=150, capacity=300)
        ext = add_site("e1", SiteKind.EXTENSION, (27, 27), amount=50, capacity=50)
        assert world.energy_available(DOMAIN) == 200

        assert world.spawn(spawn, [W, C, M], "x") == ResultCode.OK
        assert (spawn.amount, ext.amount) == (0, 0)
        assert world.spawn(spawn, [M], "y") == ResultCode.BUSY

    def test_duplicate_name(self, world, add_site, add_worker):
        spawn = add_site("s1", SiteKind.SPAWN, (25, 25), amount=300, capacity=300)
        add_worker("x", (1, 1))
        assert world.spawn(spawn, [W, C, M], "x") == ResultCode.INVALID_ARGS

    def test_inactive_spawn(self, world, add_site):
        spawn = add_site("s1", SiteKind.SPAWN, (25, 25), amount=300, capacity=300, active=False)
        assert world.spawn(spawn, [W, C, M], "x") == ResultCode.NOT_OWNER


class TestScenario:
    """Test loading and aging."""

    def test_from_dict_and_tick(self):
        world = SimWorld.from_dict({
            "domains": [{"name": "W1N1", "walls": [[1, 1]], "quotas": {"link": 1}}],
            "sites": [{"id": "src1", "kind": "source", "domain": "W1N1", "pos": [5, 5], "amount": 10}],
            "workers": [{"id": "w1", "domain": "W1N1", "pos": [6, 6], "body": ["work", "move"],
                         "ticks_to_live": 1}],
        })

        assert world.domains() == ["W1N1"]
        assert world.is_wall("W1N1", Position(1, 1))
        assert world.structure_quota("W1N1", SiteKind.LINK) == 1
        assert world.get_site("src1").amount == 10

        world.tick()
        assert world.get_worker("w1") is None
        assert world.tick_count == 1

    def test_build_quota(self, world):
        assert world.build(DOMAIN, Position(3, 3), SiteKind.LINK) == ResultCode.OK
        assert world.build(DOMAIN, Position(4, 4), SiteKind.LINK) == ResultCode.FULL
        assert world.build(DOMAIN, Position(3, 3), SiteKind.EXTENSION) == ResultCode.INVALID_TARGET
