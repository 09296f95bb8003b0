from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from common.errors import CyclicPackageDependency
from common.schema import ArtifactStatus, MixIdentity
from orchestrator.planner import MixBuildPlanner
from resolver import DependencyClosureBuilder, PackageInfoResolver

from fakes import FakeChecker, FakeIntrospector


def _closure(graph, requested):
    resolver = PackageInfoResolver(FakeIntrospector.from_graph(graph))
    return DependencyClosureBuilder(resolver, idl_type="rosidl").build(requested)


def test_nav_msgs_scenario_plans_only_missing_middleware() -> None:
    graph = {
        "nav_msgs": ["std_msgs", "geometry_msgs"],
        "std_msgs": [],
        "geometry_msgs": [],
    }
    closure = _closure(graph, ["nav_msgs"])
    checker = FakeChecker(
        available=[("ros2", "std_msgs"), ("ros2", "geometry_msgs"), ("ros2", "nav_msgs")]
    )
    planner = MixBuildPlanner("rosidl")

    ros2_plan = planner.plan(closure, "ros2", checker)
    assert ros2_plan.packages == []
    assert [identity.package for identity in ros2_plan.satisfied] == ["nav_msgs", "std_msgs", "geometry_msgs"]

    websocket_plan = planner.plan(closure, "websocket", checker)
    order = websocket_plan.packages
    assert set(order) == {"nav_msgs", "std_msgs", "geometry_msgs"}
    assert order.index("std_msgs") < order.index("nav_msgs")
    assert order.index("geometry_msgs") < order.index("nav_msgs")
    assert all(artifact.status is ArtifactStatus.TO_BE_GENERATED for artifact in websocket_plan)


def test_every_predecessor_comes_first() -> None:
    graph = {
        "app_msgs": ["nav_msgs", "sensor_msgs"],
        "nav_msgs": ["geometry_msgs", "std_msgs"],
        "sensor_msgs": ["geometry_msgs", "std_msgs"],
        "geometry_msgs": ["std_msgs"],
        "std_msgs": ["builtin_interfaces"],
        "builtin_interfaces": [],
    }
    plan = MixBuildPlanner("rosidl").plan(_closure(graph, ["app_msgs"]), "websocket", FakeChecker())
    index = {package: position for position, package in enumerate(plan.packages)}
    for artifact in plan:
        for dependency in artifact.dependencies:
            assert index[dependency.package] < index[artifact.package]


def test_available_dependencies_stay_link_dependencies() -> None:
    graph = {"nav_msgs": ["std_msgs"], "std_msgs": []}
    plan = MixBuildPlanner("rosidl").plan(
        _closure(graph, ["nav_msgs"]), "websocket", FakeChecker(available=[("websocket", "std_msgs")])
    )
    assert plan.packages == ["nav_msgs"]
    assert plan.artifacts[0].dependencies == (MixIdentity("rosidl", "websocket", "std_msgs"),)
    assert plan.satisfied == [MixIdentity("rosidl", "websocket", "std_msgs")]


def test_cycle_fails_planning() -> None:
    graph = {"x_msgs": ["y_msgs"], "y_msgs": ["x_msgs"]}
    with pytest.raises(CyclicPackageDependency) as excinfo:
        MixBuildPlanner("rosidl").plan(_closure(graph, ["x_msgs"]), "websocket", FakeChecker())
    assert set(excinfo.value.cycle) == {"x_msgs", "y_msgs"}
    assert "[x_msgs]" in str(excinfo.value)


def test_longer_cycle_names_only_its_members() -> None:
    graph = {
        "app_msgs": ["a_msgs", "std_msgs"],
        "a_msgs": ["b_msgs"],
        "b_msgs": ["c_msgs"],
        "c_msgs": ["a_msgs", "std_msgs"],
        "std_msgs": [],
    }
    with pytest.raises(CyclicPackageDependency) as excinfo:
        MixBuildPlanner("rosidl").plan(_closure(graph, ["app_msgs"]), "websocket", FakeChecker())
    cycle = excinfo.value.cycle
    assert set(cycle) == {"a_msgs", "b_msgs", "c_msgs"}
    assert len(cycle) == 4
    assert cycle[0] == cycle[-1]
    for dependency, dependent in zip(cycle, cycle[1:]):
        assert dependency in graph[dependent]


def test_cycle_between_available_artifacts_is_not_planned() -> None:
    graph = {"x_msgs": ["y_msgs"], "y_msgs": ["x_msgs"]}
    checker = FakeChecker(available=[("ros2", "x_msgs"), ("ros2", "y_msgs")])
    plan = MixBuildPlanner("rosidl").plan(_closure(graph, ["x_msgs"]), "ros2", checker)
    assert plan.packages == []


def test_status_messages_name_requesters(caplog: pytest.LogCaptureFixture) -> None:
    graph = {"nav_msgs": ["std_msgs"], "std_msgs": []}
    closure = _closure(graph, ["nav_msgs"])
    checker = FakeChecker(available=[("ros2", "std_msgs")])

    with caplog.at_level("INFO", logger="orchestrator.planner"):
        MixBuildPlanner("rosidl").plan(closure, "ros2", checker)
    assert "Found [ros2] mix for package [std_msgs] required by [nav_msgs]." in caplog.text
    assert "The [ros2] mix for [nav_msgs] will be automatically generated." in caplog.text
    assert "required by [the user]" in caplog.text

    caplog.clear()
    with caplog.at_level("INFO", logger="orchestrator.planner"):
        MixBuildPlanner("rosidl", quiet=True).plan(closure, "ros2", checker)
    assert caplog.text == ""
