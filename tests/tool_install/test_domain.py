"""
Tests for L1 domain helpers — prerequisite graph, versions, platform.
"""

import pytest

from hudo.core.services.tool_install.domain.dag import (
    dependents,
    install_order,
    prerequisite_closure,
    validate_graph,
)
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.domain.versions import (
    git_tag_for,
    major_minor,
    parse_git_tag,
)
from hudo.core.services.tool_install.installers import PREREQUISITES

GRAPH = {
    "git": frozenset(),
    "gh": frozenset({"git"}),
    "jdk": frozenset(),
    "maven": frozenset({"jdk"}),
    "gradle": frozenset({"jdk"}),
}


class TestGraph:
    def test_shipped_graph_is_valid(self):
        assert validate_graph(PREREQUISITES) == []

    def test_unknown_reference(self):
        errors = validate_graph({"gh": {"git"}})
        assert errors == ["Tool 'gh' requires unknown tool 'git'"]

    def test_cycle(self):
        errors = validate_graph({"a": {"b"}, "b": {"a"}})
        assert errors and "cycle" in errors[0]

    def test_closure(self):
        assert prerequisite_closure(["gh"], GRAPH) == {"gh", "git"}

    def test_prerequisite_first_regardless_of_request_order(self):
        order = install_order(["maven", "gh", "jdk"], GRAPH)
        assert order == ["git", "jdk", "gh", "maven"]
        assert order.index("git") < order.index("gh")
        assert order.index("jdk") < order.index("maven")

    def test_without_prerequisites(self):
        assert install_order(["gh"], GRAPH, include_prerequisites=False) == ["gh"]

    def test_order_is_stable(self):
        assert install_order(["gradle", "maven"], GRAPH) == ["jdk", "maven", "gradle"]

    def test_cycle_raises(self):
        with pytest.raises(ValueError):
            install_order(["a"], {"a": {"b"}, "b": {"a"}})

    def test_dependents(self):
        assert dependents("jdk", GRAPH) == {"maven", "gradle"}
        assert dependents("gh", GRAPH) == set()


class TestGitVersions:
    @pytest.mark.parametrize("tag, expected", [
        ("v2.47.1.windows.2", "2.47.1.2"),
        ("v2.53.0.windows.1", "2.53.0"),
        ("2.47.1.windows.3", "2.47.1.3"),
        ("v2.47.1", None),
        ("nightly", None),
    ])
    def test_parse_git_tag(self, tag, expected):
        assert parse_git_tag(tag) == expected

    def test_tag_for(self):
        assert git_tag_for("2.47.1.2") == "v2.47.1.windows.2"
        assert git_tag_for("2.53.0") == "v2.53.0.windows.1"

    def test_major_minor(self):
        assert major_minor("8.4.4") == "8.4"


class TestPlatform:
    def test_windows(self):
        plat = Platform("windows", "amd64")
        assert plat.exe("bin/go") == "bin/go.exe"
        assert plat.archive_ext == "zip"

    def test_linux(self):
        plat = Platform("linux", "arm64")
        assert plat.exe("bin/go") == "bin/go"
        assert plat.archive_ext == "tar.gz"
