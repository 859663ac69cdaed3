"""
Tests for the kernel tick loop and the command line.
"""

import json
import sys

import pytest

from colony_kernel import daemon
from colony_kernel.daemon import Kernel
from colony_kernel.models.body import BodyPart
from colony_kernel.snapshot import DomainSnapshot, LedgerSnapshot
from colony_kernel.world import Position, SiteKind

from conftest import DOMAIN

M, W, C = BodyPart.MOVE, BodyPart.WORK, BodyPart.CARRY


class TestKernelTick:
    """Test multi-cycle operation against the simulated world."""

    @pytest.fixture
    def colony(self, world, add_site, add_worker):
        add_site("s1", SiteKind.SPAWN, (25, 25), amount=300, capacity=300)
        add_site("src1", SiteKind.SOURCE, (20, 25), amount=3000)
        return add_worker("w1", (22, 25), body=[W, C, M, M])

    def test_two_ticks(self, world, config, store, colony):
        first = Kernel(world, config, store=store).tick()
        world.tick()

        assert len(first) == 1
        assert [d.name for d in first[0].directives] == ["W1N1-0"]
        assert colony.pos == Position(21, 25)
        assert world.get_worker("W1N1-0") is not None

        Kernel(world, config, store=store).tick()
        world.tick()

        snapshot = store.load(DOMAIN)
        assert snapshot.ledgers == [
            LedgerSnapshot(job="job:harvest:src1", workers=["w1", "W1N1-0"]),
        ]
        assert snapshot.clone_count == 1
        assert colony.carried == 2

    def test_restart_resumes_from_snapshot(self, world, config, store, colony):
        Kernel(world, config, store=store).tick()
        before = store.load(DOMAIN)

        # same world, fresh process, nothing executed in between
        world.get_worker("W1N1-0").pos = Position(40, 40)
        colony.job = None
        Kernel(world, config, store=store).tick()

        assert colony.job == "job:harvest:src1"
        assert store.load(DOMAIN).ledgers[0].workers[0] == before.ledgers[0].workers[0]

    def test_failed_domain_keeps_previous_snapshot(self, world, config, store, add_site, monkeypatch):
        world.add_domain("broken")
        world.add_domain("fine")
        add_site("src9", SiteKind.SOURCE, (5, 5), amount=3000, domain="fine")
        previous = DomainSnapshot(
            domain="broken",
            ledgers=[LedgerSnapshot(job="job:harvest:x", workers=["w9"])],
        )
        store.save(previous)

        find_workers = world.find_workers

        def crashing_find_workers(domain):
            if domain == "broken":
                raise RuntimeError("world query crashed")
            return find_workers(domain)

        monkeypatch.setattr(world, "find_workers", crashing_find_workers)
        kernel = Kernel(world, config, store=store)
        results = kernel.tick()

        assert sorted(r.domain for r in results) == [DOMAIN, "fine"]
        assert store.load("broken") == previous
        assert store.path_for("fine").exists()
        assert kernel.get_stats()["failed_domains"] == 1


class TestCommandLine:
    """Test the colony-kernel entry point."""

    SCENARIO = """
domains:
  - name: W1N1
    quotas: {extension: 2}
sites:
  - {id: s1, kind: spawn, domain: W1N1, pos: [25, 25], amount: 300, capacity: 300}
  - {id: src1, kind: source, domain: W1N1, pos: [20, 25], amount: 3000}
workers:
  - {id: w1, domain: W1N1, pos: [22, 25], body: [work, carry, move, move]}
"""

    def test_run(self, tmp_path, monkeypatch, capsys):
        scenario = tmp_path / "scenario.yaml"
        scenario.write_text(self.SCENARIO)
        state_dir = tmp_path / "state"
        monkeypatch.setattr(sys, "argv", [
            "colony-kernel", "--log-level", "ERROR",
            "run", "--world", str(scenario), "--state-dir", str(state_dir), "--cycles", "3",
        ])

        assert daemon.main() == 0

        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert [line["tick"] for line in lines] == [1, 2, 3]
        assert lines[0]["cycles"][0]["domain"] == "W1N1"
        assert lines[0]["cycles"][0]["bindings"] == 1
        assert (state_dir / "W1N1.json").exists()

    def test_show(self, tmp_path, monkeypatch, capsys, store):
        store.save(DomainSnapshot(domain="W1N1", clone_count=4))
        monkeypatch.setattr(sys, "argv", [
            "colony-kernel", "show", "W1N1", "--state-dir", str(store.state_dir),
        ])

        assert daemon.main() == 0
        assert json.loads(capsys.readouterr().out)["clone_count"] == 4

    def test_missing_scenario(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", [
            "colony-kernel", "run", "--world", str(tmp_path / "nope.yaml"),
            "--state-dir", str(tmp_path),
        ])
        assert daemon.main() == 1
        assert "Error loading scenario" in capsys.readouterr().err
