from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from common.config import MixRequest, MixSettings
from common.config.extensions import clear_extension_cache
from common.errors import CyclicPackageDependency, GenerationFailed, RequiredProblemsError
from common.paths import library_filename
from executor import BuildGraph, apply_install
from orchestrator import MixRun
from orchestrator import cli
from orchestrator.mix import BUILD_GRAPH_FILENAME, REPORT_FILENAME
from registry import RunRegistry, config_descriptor_path

from fakes import FakeGenerator, FakeIntrospector, write_extension

NAV_GRAPH = {
    "nav_msgs": ["std_msgs", "geometry_msgs"],
    "geometry_msgs": ["std_msgs"],
    "std_msgs": [],
}


@pytest.fixture(autouse=True)
def _fresh_extension_cache():
    clear_extension_cache()
    yield
    clear_extension_cache()


def _settings(tmp_path: Path, *middlewares: str) -> MixSettings:
    ext_dir = tmp_path / "extensions"
    for middleware in middlewares:
        write_extension(ext_dir, "rosidl", middleware)
    return MixSettings(
        build_dir=tmp_path / "build",
        install_prefix=tmp_path / "install",
        extension_dirs=[ext_dir],
    )


def _request(**overrides) -> MixRequest:
    values = {
        "idl_type": "rosidl",
        "packages": ["nav_msgs"],
        "middlewares": ["ros2", "websocket"],
        "quiet": True,
    }
    values.update(overrides)
    return MixRequest(**values)


def test_full_run_builds_every_missing_artifact(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "ros2", "websocket")
    generator = FakeGenerator()
    report = MixRun(
        _request(),
        settings,
        introspector=FakeIntrospector.from_graph(NAV_GRAPH),
        generator=generator,
    ).run()

    for middleware in ("ros2", "websocket"):
        order = report.plans[middleware]
        assert order.index("std_msgs") < order.index("geometry_msgs") < order.index("nav_msgs")
        assert sorted(generator.packages_for(middleware)) == sorted(NAV_GRAPH)
    assert len(report.built) == 6
    graph = json.loads((settings.build_dir / BUILD_GRAPH_FILENAME).read_text(encoding="utf-8"))
    assert len(graph["units"]) == 6
    assert (settings.build_dir / REPORT_FILENAME).exists()


def _compile(graph: BuildGraph) -> None:
    """Stand-in for the native toolchain: one library file per unit."""

    for unit in graph.units.values():
        unit.output_dir.mkdir(parents=True, exist_ok=True)
        (unit.output_dir / library_filename(unit.name)).write_bytes(b"\x7fELF")


def test_second_run_after_install_plans_nothing(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "ros2", "websocket")
    first = MixRun(
        _request(), settings, introspector=FakeIntrospector.from_graph(NAV_GRAPH), generator=FakeGenerator()
    ).run()
    graph = BuildGraph.load(first.build_graph_path)
    _compile(graph)
    summary = apply_install(graph, settings.install_prefix)
    assert summary.skipped == []
    assert (settings.install_prefix / "lib" / library_filename("rosidl-ros2-nav_msgs-mix")).exists()
    assert config_descriptor_path(settings.install_prefix, "rosidl-ros2-nav_msgs-mix").exists()
    assert (settings.install_prefix / "lib" / "mix" / "rosidl" / "websocket" / "msg" / "nav_msgs").is_dir()

    generator = FakeGenerator()
    second = MixRun(
        _request(), settings, introspector=FakeIntrospector.from_graph(NAV_GRAPH), generator=generator
    ).run()
    assert second.plans == {"ros2": [], "websocket": []}
    assert generator.calls == []


def test_uncompiled_artifacts_are_not_installed_as_available(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "websocket")
    request = _request(middlewares=["websocket"])
    first = MixRun(
        request, settings, introspector=FakeIntrospector.from_graph(NAV_GRAPH), generator=FakeGenerator()
    ).run()
    summary = apply_install(BuildGraph.load(first.build_graph_path), settings.install_prefix)
    assert {rule.target for rule in summary.skipped} == {
        "rosidl-websocket-std_msgs-mix",
        "rosidl-websocket-geometry_msgs-mix",
        "rosidl-websocket-nav_msgs-mix",
    }
    assert not config_descriptor_path(settings.install_prefix, "rosidl-websocket-nav_msgs-mix").exists()
    assert not (settings.install_prefix / "lib" / "mix" / "rosidl").exists()

    generator = FakeGenerator()
    second = MixRun(
        request, settings, introspector=FakeIntrospector.from_graph(NAV_GRAPH), generator=generator
    ).run()
    assert sorted(second.plans["websocket"]) == sorted(NAV_GRAPH)
    assert len(generator.calls) == 3


def test_missing_middleware_extension_is_dropped(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "websocket")
    report = MixRun(
        _request(), settings, introspector=FakeIntrospector.from_graph(NAV_GRAPH), generator=FakeGenerator()
    ).run()
    assert report.middlewares == ["websocket"]
    assert any("[rosidl-ros2-mix]" in problem for problem in report.problems)


def test_required_run_stops_before_generation(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "ros2", "websocket")
    generator = FakeGenerator()
    run = MixRun(
        _request(required=True),
        settings,
        introspector=FakeIntrospector.from_graph(NAV_GRAPH, missing=["geometry_msgs"]),
        generator=generator,
    )
    with pytest.raises(RequiredProblemsError) as excinfo:
        run.run()
    assert "[geometry_msgs]" in excinfo.value.problems[0]
    assert generator.calls == []
    assert not (settings.build_dir / BUILD_GRAPH_FILENAME).exists()


def test_non_required_run_continues_with_reduced_closure(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "websocket")
    graph = dict(NAV_GRAPH, sensor_msgs=["std_msgs"])
    report = MixRun(
        _request(packages=["nav_msgs", "sensor_msgs"], middlewares=["websocket"]),
        settings,
        introspector=FakeIntrospector.from_graph(graph, missing=["geometry_msgs"]),
        generator=FakeGenerator(),
    ).run()
    assert report.excluded_packages == ["nav_msgs", "geometry_msgs"]
    assert report.plans == {"websocket": ["std_msgs", "sensor_msgs"]}


def test_cycle_aborts_before_any_generation(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "websocket")
    generator = FakeGenerator()
    run = MixRun(
        _request(packages=["x_msgs"], middlewares=["websocket"]),
        settings,
        introspector=FakeIntrospector.from_graph({"x_msgs": ["y_msgs"], "y_msgs": ["x_msgs"]}),
        generator=generator,
    )
    with pytest.raises(CyclicPackageDependency):
        run.run()
    assert generator.calls == []


def test_generation_failure_leaves_nothing_registered(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "websocket")
    registry = RunRegistry()
    graph = BuildGraph()
    run = MixRun(
        _request(middlewares=["websocket"]),
        settings,
        introspector=FakeIntrospector.from_graph(NAV_GRAPH),
        generator=FakeGenerator(stderr_for={"nav_msgs": "boom"}),
        registry=registry,
        graph=graph,
    )
    with pytest.raises(GenerationFailed):
        run.run()
    assert registry.built() == []
    assert graph.units == {}
    assert graph.install_rules == []
    assert not (settings.build_dir / BUILD_GRAPH_FILENAME).exists()


def test_retry_after_abort_rebuilds_with_the_same_registry(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "websocket")
    registry = RunRegistry()
    introspector = FakeIntrospector.from_graph(NAV_GRAPH)
    with pytest.raises(GenerationFailed):
        MixRun(
            _request(middlewares=["websocket"]),
            settings,
            introspector=introspector,
            generator=FakeGenerator(stderr_for={"nav_msgs": "boom"}),
            registry=registry,
        ).run()

    generator = FakeGenerator()
    report = MixRun(
        _request(middlewares=["websocket"]),
        settings,
        introspector=introspector,
        generator=generator,
        registry=registry,
    ).run()
    assert sorted(generator.packages_for("websocket")) == sorted(NAV_GRAPH)
    assert sorted(artifact.package for artifact in report.built) == sorted(NAV_GRAPH)
    exported = json.loads(report.build_graph_path.read_text(encoding="utf-8"))
    assert len(exported["units"]) == 3


def test_repeated_orchestration_shares_the_registry(tmp_path: Path) -> None:
    settings = _settings(tmp_path, "ros2", "websocket")
    registry = RunRegistry()
    graph = BuildGraph()
    introspector = FakeIntrospector.from_graph(NAV_GRAPH)
    generator = FakeGenerator()
    reports = [
        MixRun(
            _request(middlewares=[middleware]),
            settings,
            introspector=introspector,
            generator=generator,
            registry=registry,
            graph=graph,
        ).run()
        for middleware in ("ros2", "websocket", "ros2")
    ]
    assert len(generator.calls) == 6
    assert len(graph.units) == 6
    assert [len(report.built) for report in reports] == [3, 3, 0]
    saved = json.loads((settings.build_dir / REPORT_FILENAME).read_text(encoding="utf-8"))
    assert saved["built"] == []


def test_cli_exits_non_zero_on_required_problem(tmp_path: Path) -> None:
    args = [
        "--idl-type",
        "rosidl",
        "--packages",
        "nav_msgs",
        "--middlewares",
        "ros2",
        "--required",
        "--quiet",
        "--find-script",
        str(tmp_path / "find.py"),
        "--build-dir",
        str(tmp_path / "build"),
        "--install-prefix",
        str(tmp_path / "install"),
        "--extension-dir",
        str(tmp_path / "extensions"),
    ]
    with pytest.raises(SystemExit) as excinfo:
        cli.main(args)
    assert excinfo.value.code == 1
