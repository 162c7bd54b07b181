import logging

import pytest

import nbody_main
from config import nbody as config
from nbody import LaunchError
from nbody.logging_config import NAMESPACES


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop the handlers ``main`` installs so later tests log normally."""
    yield
    for name in NAMESPACES:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)


def test_parser_defaults_follow_config():
    args = nbody_main.build_parser().parse_args([])
    cfg = config.NBODY
    assert args.bodies == cfg["count"]
    assert args.dt == cfg["dt"]
    assert args.seed == cfg["seed"]
    assert args.backend == cfg["backend"]
    assert not args.headless


@pytest.mark.parametrize("argv", [
    ["--bodies", "0"],
    ["--dt", "0"],
    ["--dt", "-1"],
    ["--steps", "0"],
    ["--backend", "metal"],
])
def test_bad_arguments_exit(argv):
    with pytest.raises(SystemExit):
        nbody_main.main(argv + ["--headless"])


def test_headless_run_reports_throughput():
    args = nbody_main.build_parser().parse_args(
        ["--headless", "--bodies", "32", "--steps", "3", "--backend", "cpu"])
    stats = nbody_main.run_headless(args)

    assert stats["bodies"] == 32
    assert stats["backend"] == "cpu"
    assert stats["ticks"] == 3
    assert stats["ticks_per_s"] > 0
    assert stats["interactions_per_s"] == pytest.approx(stats["ticks_per_s"] * 32 * 33)


def test_main_headless_exit_code():
    assert nbody_main.main(["--headless", "-n", "16", "--steps", "2", "--backend", "cpu"]) == 0


def test_main_reports_engine_failures(monkeypatch, caplog):
    def broken(args):
        raise LaunchError("compute accelerations", "simulation.py:1 in step_simulation", "boom")

    monkeypatch.setattr(nbody_main, "run_headless", broken)
    with caplog.at_level(logging.ERROR, logger="nbody_main"):
        code = nbody_main.main(["--headless", "--backend", "cpu"])

    assert code == 1
    assert "compute accelerations" in caplog.text
