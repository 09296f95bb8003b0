from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from common.errors import MalformedPackageInfo, PackageNotFound
from common.schema import parse_package_info, type_names
from resolver import PackageInfoResolver, ScriptIntrospector

from fakes import FakeIntrospector, describe


def test_parse_four_fields() -> None:
    output = describe(
        ["std_msgs", "geometry_msgs"],
        ["/share/nav_msgs/msg/Odometry.msg", "/share/nav_msgs/msg/Path.msg"],
        ["/share/nav_msgs/srv/GetMap.srv"],
        ["/share/nav_msgs/msg/Odometry.idl"],
    )
    info = parse_package_info("nav_msgs", output + "\n")
    assert info.dependencies == ("std_msgs", "geometry_msgs")
    assert info.msg_types == ["Odometry", "Path"]
    assert info.srv_types == ["GetMap"]
    assert info.file_dependencies == (Path("/share/nav_msgs/msg/Odometry.idl"),)


def test_parse_empty_fields_and_self_dependency() -> None:
    info = parse_package_info("std_msgs", "std_msgs#builtin_interfaces;;;")
    assert info.dependencies == ("builtin_interfaces",)
    assert info.msg_files == ()
    assert info.srv_files == ()


@pytest.mark.parametrize("output", ["", "a;b;c", "a;b;c;d;e"])
def test_parse_rejects_wrong_field_count(output: str) -> None:
    with pytest.raises(MalformedPackageInfo):
        parse_package_info("broken_msgs", output)


def test_type_names_strip_every_extension() -> None:
    assert type_names([Path("a/Pose.msg"), Path("b/Pose.idl"), Path("c/Twist.msg")]) == ["Pose", "Twist"]


def test_resolver_invokes_tool_once_per_package() -> None:
    introspector = FakeIntrospector({"std_msgs": describe()})
    resolver = PackageInfoResolver(introspector)
    first = resolver.resolve("std_msgs")
    second = resolver.resolve("std_msgs")
    assert first is second
    assert introspector.calls == ["std_msgs"]


def test_resolver_memoizes_failures() -> None:
    introspector = FakeIntrospector({"odd_msgs": "only;three;fields"})
    resolver = PackageInfoResolver(introspector)
    for _ in range(2):
        with pytest.raises(PackageNotFound):
            resolver.resolve("ghost_msgs")
        with pytest.raises(MalformedPackageInfo):
            resolver.resolve("odd_msgs")
    assert introspector.calls == ["ghost_msgs", "odd_msgs"]


def test_resolver_attaches_native_dependencies(tmp_path: Path) -> None:
    prefix = tmp_path / "prefix"
    (prefix / "include" / "std_msgs").mkdir(parents=True)
    (prefix / "lib").mkdir()
    (prefix / "lib" / "libstd_msgs__typesupport.so").write_text("", encoding="utf-8")
    (prefix / "lib" / "libstd_msgs.txt").write_text("", encoding="utf-8")
    (prefix / "lib" / "libstd_msgs_ext.so").write_text("", encoding="utf-8")
    (prefix / "lib" / "libstd_msgs.so").write_text("", encoding="utf-8")
    resolver = PackageInfoResolver(FakeIntrospector({"std_msgs": describe()}), prefixes=[prefix])
    info = resolver.resolve("std_msgs")
    assert info.libraries == ("std_msgs", "std_msgs__typesupport")
    assert info.include_dirs == (prefix / "include" / "std_msgs",)


@pytest.mark.subprocess
def test_script_introspector_runs_find_script(tmp_path: Path) -> None:
    script = tmp_path / "find_package_info.py"
    script.write_text(
        textwrap.dedent(
            """
            import sys

            package = sys.argv[1]
            if package != "std_msgs":
                sys.stderr.write("unknown package " + package)
                sys.exit(1)
            sys.stdout.write("builtin_interfaces;/share/std_msgs/msg/Header.msg;;")
            """
        ),
        encoding="utf-8",
    )
    resolver = PackageInfoResolver(ScriptIntrospector(sys.executable, script))
    info = resolver.resolve("std_msgs")
    assert info.dependencies == ("builtin_interfaces",)
    assert info.msg_types == ["Header"]
    with pytest.raises(PackageNotFound) as excinfo:
        resolver.resolve("ghost_msgs")
    assert "unknown package ghost_msgs" in str(excinfo.value)
