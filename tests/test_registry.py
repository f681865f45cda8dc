"""Tests for catalog loading and lookup."""

import pytest

from marketplace_registry import (
    ConfigurationError,
    EntityRef,
    InMemoryStore,
    ManifestError,
    ManifestErrorKind,
    NotFoundError,
    entities_for,
    list_plugins,
    load_catalog,
    load_entity_body,
    resolve_plugin,
)
from marketplace_registry.models import EntitySet
from marketplace_registry.store import EntityStore

K8S_SKILLS = ["k8s-manifests", "helm-charts", "gitops", "security-policies"]


class CountingStore(EntityStore):
    """Store that records every exists/read call."""

    def __init__(self, bodies):
        self.inner = InMemoryStore(bodies)
        self.exists_calls = 0
        self.read_calls = []

    def exists(self, ref):
        self.exists_calls += 1
        return self.inner.exists(ref)

    def read(self, ref):
        self.read_calls.append(str(ref))
        return self.inner.read(ref)


def k8s_manifest():
    return {
        "name": "ops",
        "plugins": [
            {
                "id": "kubernetes-operations",
                "name": "Kubernetes Operations",
                "category": "infrastructure",
                "skills": K8S_SKILLS,
            }
        ],
    }


def k8s_store():
    return InMemoryStore(
        {f"kubernetes-operations/skills/{s}": f"# {s}" for s in K8S_SKILLS}
    )


class TestLoadCatalog:
    """Tests for load_catalog."""

    def test_kubernetes_operations_scenario(self):
        catalog = load_catalog(k8s_manifest(), k8s_store())

        entities = entities_for(catalog, "kubernetes-operations")
        assert entities == EntitySet(agents=(), commands=(), skills=tuple(K8S_SKILLS))

    def test_dangling_reference_scenario(self):
        manifest = {
            "plugins": [
                {"id": "x", "name": "X", "category": "misc", "skills": ["y-skill"]}
            ]
        }

        with pytest.raises(ManifestError) as exc_info:
            load_catalog(manifest, InMemoryStore())

        error = exc_info.value
        assert error.kind is ManifestErrorKind.DANGLING_REFERENCE
        assert error.plugin_id == "x"
        assert error.entity_id == "y-skill"
        assert "x" in str(error) and "y-skill" in str(error)

    def test_reference_must_resolve_in_owning_plugin(self):
        manifest = {
            "plugins": [
                {"id": "a", "name": "A", "category": "misc", "agents": ["shared"]},
                {"id": "b", "name": "B", "category": "misc", "agents": ["shared"]},
            ]
        }
        store = InMemoryStore({"a/agents/shared": "only a has it"})

        with pytest.raises(ManifestError) as exc_info:
            load_catalog(manifest, store)
        assert exc_info.value.plugin_id == "b"

    def test_corrupt_then_fix_reference(self, make_marketplace):
        manifest = {
            "plugins": [
                {"id": "p", "name": "P", "category": "misc", "commands": ["deploy"]}
            ]
        }
        path = make_marketplace(manifest)

        with pytest.raises(ManifestError) as exc_info:
            load_catalog(path)
        assert exc_info.value.kind is ManifestErrorKind.DANGLING_REFERENCE

        make_marketplace(manifest, files=("p/commands/deploy.md",))
        catalog = load_catalog(path)
        assert load_entity_body(catalog, "p:deploy") == "# p/commands/deploy.md\n"

    def test_idempotent(self):
        first = load_catalog(k8s_manifest(), k8s_store())
        second = load_catalog(k8s_manifest(), k8s_store())

        assert first == second
        assert first is not second
        assert list_plugins(first) == list_plugins(second)

    def test_declaration_order_is_kept(self):
        ids = ["zeta", "alpha", "mu"]
        manifest = {
            "plugins": [{"id": i, "name": i.title(), "category": "misc"} for i in ids]
        }

        catalog = load_catalog(manifest, InMemoryStore())
        assert [s.id for s in list_plugins(catalog)] == ids

    def test_mapping_requires_store(self):
        with pytest.raises(ConfigurationError):
            load_catalog(k8s_manifest())

    def test_malformed_manifest(self):
        with pytest.raises(ManifestError) as exc_info:
            load_catalog({"plugins": [{"id": "x"}]}, InMemoryStore())
        assert exc_info.value.kind is ManifestErrorKind.MALFORMED_STRUCTURE

    def test_plugin_id_cannot_climb_out_of_content_root(self, make_marketplace, tmp_path):
        # The content root is tmp_path/marketplace, so ".." would be tmp_path
        (tmp_path / "agents").mkdir()
        (tmp_path / "agents" / "secret.md").write_text("outside", encoding="utf-8")
        path = make_marketplace(
            {"plugins": [{"id": "..", "name": "Up", "category": "misc", "agents": ["secret"]}]}
        )

        with pytest.raises(ManifestError) as exc_info:
            load_catalog(path)
        assert exc_info.value.kind is ManifestErrorKind.MALFORMED_STRUCTURE

    def test_source_outside_content_root(self, make_marketplace, tmp_path):
        (tmp_path / "elsewhere" / "agents").mkdir(parents=True)
        (tmp_path / "elsewhere" / "agents" / "a.md").write_text("x", encoding="utf-8")
        path = make_marketplace(
            {
                "plugins": [
                    {
                        "id": "p",
                        "name": "P",
                        "category": "misc",
                        "source": "../elsewhere",
                        "agents": ["a"],
                    }
                ]
            }
        )

        with pytest.raises(ManifestError) as exc_info:
            load_catalog(path)
        assert exc_info.value.kind is ManifestErrorKind.MALFORMED_STRUCTURE
        assert exc_info.value.field == "source"

    def test_source_linked_outside_content_root(self, make_marketplace, tmp_path):
        (tmp_path / "elsewhere" / "agents").mkdir(parents=True)
        (tmp_path / "elsewhere" / "agents" / "a.md").write_text("x", encoding="utf-8")
        manifest = {
            "plugins": [
                {"id": "p", "name": "P", "category": "misc", "source": "linked", "agents": ["a"]}
            ]
        }
        path = make_marketplace(manifest)
        (path.parent.parent / "linked").symlink_to(tmp_path / "elsewhere")

        with pytest.raises(ManifestError) as exc_info:
            load_catalog(path)
        assert exc_info.value.kind is ManifestErrorKind.MALFORMED_STRUCTURE
        assert exc_info.value.field == "source"

    def test_unreadable_body_is_not_found(self, make_marketplace):
        manifest = {"plugins": [{"id": "p", "name": "P", "category": "misc", "agents": ["a"]}]}
        path = make_marketplace(manifest, files=("p/agents/a.md",))
        catalog = load_catalog(path)
        (path.parent.parent / "p" / "agents" / "a.md").write_bytes(b"\xff\xfe")

        with pytest.raises(NotFoundError):
            load_entity_body(catalog, "p/agents/a")

    def test_loading_does_not_read_bodies(self):
        store = CountingStore(
            {f"kubernetes-operations/skills/{s}": "body" for s in K8S_SKILLS}
        )

        catalog = load_catalog(k8s_manifest(), store)
        catalog.list_plugins()
        catalog.entities_for("kubernetes-operations")

        assert store.exists_calls == len(K8S_SKILLS)
        assert store.read_calls == []

    def test_example_marketplace(self, sample_manifest):
        catalog = load_catalog(sample_manifest)

        assert catalog.name == "sample-marketplace"
        assert catalog.categories() == ("development", "infrastructure")
        for summary in catalog.list_plugins():
            entities = catalog.entities_for(summary.id)
            for kind, ids in (
                ("agents", entities.agents),
                ("commands", entities.commands),
                ("skills", entities.skills),
            ):
                for entity_id in ids:
                    assert catalog.load_entity_body(f"{summary.id}/{kind}/{entity_id}")


class TestLookups:
    """Tests for catalog lookups."""

    @pytest.fixture
    def catalog(self):
        manifest = {
            "plugins": [
                {
                    "id": "backend-development",
                    "name": "Backend Development",
                    "category": "development",
                    "agents": [{"id": "backend-architect", "description": "Designs APIs"}],
                    "commands": ["feature-development"],
                    "skills": [{"id": "api-design", "activation": "When designing APIs"}],
                },
                *k8s_manifest()["plugins"],
            ]
        }
        bodies = {
            "backend-development/agents/backend-architect": "architect",
            "backend-development/commands/feature-development": "workflow",
            "backend-development/skills/api-design": "principles",
            "backend-development/skills/undeclared": "hidden",
        }
        bodies.update({f"kubernetes-operations/skills/{s}": s for s in K8S_SKILLS})
        return load_catalog(manifest, InMemoryStore(bodies))

    def test_resolve_plugin(self, catalog):
        plugin = resolve_plugin(catalog, "backend-development")
        assert plugin.name == "Backend Development"
        assert plugin.agents[0].description == "Designs APIs"
        assert plugin.skills[0].activation == "When designing APIs"

    def test_resolve_plugin_miss(self, catalog):
        with pytest.raises(NotFoundError) as exc_info:
            resolve_plugin(catalog, "nonexistent")
        assert exc_info.value.kind == "plugin"
        assert exc_info.value.identifier == "nonexistent"

    def test_resolve_plugin_is_case_sensitive(self, catalog):
        with pytest.raises(NotFoundError):
            resolve_plugin(catalog, "Backend-Development")

    def test_not_found_is_a_lookup_error(self, catalog):
        with pytest.raises(LookupError):
            catalog.entities_for("nonexistent")

    def test_load_entity_body_by_ref_and_address(self, catalog):
        ref = EntityRef.parse("backend-development/agents/backend-architect")
        assert load_entity_body(catalog, ref) == "architect"
        assert catalog.load_entity_body("backend-development:feature-development") == "workflow"

    def test_load_undeclared_entity_raises(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.load_entity_body("backend-development/skills/undeclared")

    @pytest.mark.parametrize(
        "address",
        ["garbage", "nonexistent/skills/gitops", "kubernetes-operations/agents/gitops"],
    )
    def test_load_entity_body_misses(self, catalog, address):
        with pytest.raises(NotFoundError):
            catalog.load_entity_body(address)

    def test_resolve_command(self, catalog):
        command = catalog.resolve_command("backend-development:feature-development")
        assert command.qualified_id == "backend-development:feature-development"

        with pytest.raises(NotFoundError):
            catalog.resolve_command("backend-development/agents/backend-architect")

    def test_categories(self, catalog):
        assert catalog.categories() == ("development", "infrastructure")
        assert [s.id for s in catalog.plugins_in_category("infrastructure")] == [
            "kubernetes-operations"
        ]

    def test_container_protocol(self, catalog):
        assert len(catalog) == 2
        assert "kubernetes-operations" in catalog
        assert "nonexistent" not in catalog
        assert [p.id for p in catalog] == ["backend-development", "kubernetes-operations"]

    def test_every_declared_entity_loads(self, catalog):
        for summary in catalog.list_plugins():
            plugin = catalog.resolve_plugin(summary.id)
            for entity in (*plugin.agents, *plugin.commands, *plugin.skills):
                catalog.load_entity_body(entity.ref)
