"""
Tests for registry change detection.
"""

from gateway_registry.application.registry.changes import diff_services, normalize_sdl
from gateway_registry.domain.registry.models import ServiceDescriptor


def svc(name: str, sdl: str = "type Query { a: Int }", url: str = "http://x") -> ServiceDescriptor:
    return ServiceDescriptor(name=name, url=url, sdl=sdl)


class TestNormalizeSdl:
    def test_formatting_only_edits(self) -> None:
        assert normalize_sdl("type Query{a:Int}") == normalize_sdl("type Query {\n  a: Int\n}\n")

    def test_unparseable_falls_back_to_text(self) -> None:
        assert normalize_sdl("  type Query {  ") == "type Query {"


class TestDiffServices:
    def test_identical(self) -> None:
        changes = diff_services([svc("a")], [svc("a", sdl="type Query {\n  a: Int\n}")])

        assert changes.is_empty
        assert changes.as_dict() == {"added": [], "removed": [], "changed": []}

    def test_added_removed_changed(self) -> None:
        published = [svc("a"), svc("b"), svc("c")]
        live = [svc("a", sdl="type Query { a: String }"), svc("c", url="http://y"), svc("d")]

        changes = diff_services(published, live)

        assert changes.added == ["d"]
        assert changes.removed == ["b"]
        assert changes.changed == ["a", "c"]
        assert not changes.is_empty

    def test_empty_registry(self) -> None:
        assert diff_services([], [svc("b"), svc("a")]).added == ["a", "b"]
