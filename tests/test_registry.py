"""
Tests for the metadata registry.
"""

from elemix_analyser.models import ComponentDeclaration, FileScan, UsedComponent
from elemix_analyser.registry import MetadataRegistry


def declaration(name, file_path):
    return ComponentDeclaration(name=name, file_path=file_path, start=0, is_multiword=True)


def usage(name, file_path, start):
    return UsedComponent(name=name, start=start, end=start + len(name), file_path=file_path)


class TestDeclarations:
    """Test suite for publishing declarations."""

    def test_publish_and_find(self):
        registry = MetadataRegistry()
        registry.publish_declarations("a.ts", [declaration("UserCard", "a.ts")])
        registry.publish_declarations("b.ts", [declaration("TodoItem", "b.ts")])

        assert [d.name for d in registry.components] == ["UserCard", "TodoItem"]
        assert registry.find_component("TodoItem").file_path == "b.ts"
        assert registry.find_component("Missing") is None
        assert [d.name for d in registry.declarations_for("a.ts")] == ["UserCard"]

    def test_republish_replaces_file_declarations(self):
        registry = MetadataRegistry()
        registry.publish_declarations("a.ts", [declaration("UserCard", "a.ts")])
        registry.publish_declarations("a.ts", [declaration("ProfileCard", "a.ts")])

        assert [d.name for d in registry.components] == ["ProfileCard"]

    def test_duplicate_flags_follow_updates(self):
        registry = MetadataRegistry()
        first = declaration("UserCard", "a.ts")
        second = declaration("UserCard", "b.ts")
        registry.publish_declarations("a.ts", [first])
        registry.publish_declarations("b.ts", [second])

        assert first.is_duplicated and second.is_duplicated

        registry.publish_declarations("b.ts", [])

        assert not first.is_duplicated
        assert registry.declarations_for("b.ts") == []

    def test_remove_file_clears_duplicates(self):
        registry = MetadataRegistry()
        first = declaration("UserCard", "a.ts")
        registry.publish_declarations("a.ts", [first])
        registry.publish_declarations("b.ts", [declaration("UserCard", "b.ts")])

        registry.remove_file("b.ts")

        assert not first.is_duplicated
        assert len(registry.components) == 1


class TestUsages:
    """Test suite for per-file usage scans."""

    def test_used_components_by_file(self):
        registry = MetadataRegistry()
        registry.set_file_scan("app.ts", FileScan(
            file_path="app.ts",
            used_components=[usage("UserCard", "app.ts", 10), usage("UserCard", "app.ts", 40),
                             usage("TodoItem", "app.ts", 70)]
        ))

        assert [u.start for u in registry.used_components["app.ts"]] == [10, 40, 70]
        assert registry.used_names("app.ts") == ["UserCard", "TodoItem"]
        assert registry.find_used_component("app.ts", "TodoItem").start == 70
        assert registry.find_used_component("other.ts", "TodoItem") is None
        assert registry.files == ["app.ts"]

    def test_readers_get_copies(self):
        registry = MetadataRegistry()
        registry.set_file_scan("app.ts", FileScan(file_path="app.ts", used_components=[usage("UserCard", "app.ts", 0)]))

        registry.used_components["app.ts"].clear()
        registry.components.append(declaration("Intruder", "x.ts"))

        assert len(registry.used_components["app.ts"]) == 1
        assert registry.components == []

    def test_reset_and_generation(self):
        registry = MetadataRegistry()
        start = registry.generation
        registry.publish_declarations("a.ts", [declaration("UserCard", "a.ts")])
        registry.set_file_scan("a.ts", FileScan(file_path="a.ts"))

        registry.reset()

        assert registry.generation == start + 3
        assert registry.components == []
        assert registry.used_components == {}
        assert registry.template_scans("a.ts") == []
