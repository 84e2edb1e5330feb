"""Tests for projecting a pipeline into React Flow nodes and edges."""

from conftest import block

from fable_builder.engine import (
    Catalogue,
    PipelineModel,
    node_type_for_kind,
    to_edges,
    to_graph,
    to_nodes,
)


class TestNodes:
    """Tests for to_nodes()."""

    def test_one_node_per_known_block(
        self, chain_pipeline: PipelineModel, sample_catalogue: Catalogue
    ) -> None:
        """Every resolvable block becomes a node, in pipeline order."""
        nodes = to_nodes(chain_pipeline, sample_catalogue)

        assert [n.id for n in nodes] == ["src", "avg", "out"]
        assert [n.type for n in nodes] == ["sourceBlock", "productBlock", "sinkBlock"]

    def test_node_data(self, chain_pipeline: PipelineModel, sample_catalogue: Catalogue) -> None:
        """Node data carries the instance, its factory and the factory title."""
        node = to_nodes(chain_pipeline, sample_catalogue)[1]

        assert node.data.instanceId == "avg"
        assert node.data.instance == chain_pipeline.blocks["avg"]
        assert node.data.factory.title == "Mean"
        assert node.data.label == "Mean"
        assert node.position == {"x": 0, "y": 0}

    def test_unknown_factory_is_skipped(self, sample_catalogue: Catalogue) -> None:
        """Blocks whose factory is missing are not rendered."""
        model = PipelineModel(
            blocks={
                "src": block("model"),
                "lost": block("ghost"),
                "gone": block("model", plugin="nope"),
            }
        )

        assert [n.id for n in to_nodes(model, sample_catalogue)] == ["src"]

    def test_unknown_kind_uses_default_renderer(self, sample_catalogue: Catalogue) -> None:
        """Factories of a kind the editor does not know get the default node type."""
        model = PipelineModel(blocks={"f": block("future", data=None)})

        assert to_nodes(model, sample_catalogue)[0].type == "default"

    def test_kind_mapping(self) -> None:
        """Known kinds map to their dedicated renderers."""
        assert node_type_for_kind("source") == "sourceBlock"
        assert node_type_for_kind("transform") == "transformBlock"
        assert node_type_for_kind("product") == "productBlock"
        assert node_type_for_kind("sink") == "sinkBlock"
        assert node_type_for_kind("reducer") == "default"

    def test_empty_pipeline(self, sample_catalogue: Catalogue) -> None:
        """An empty pipeline projects to an empty graph."""
        graph = to_graph(PipelineModel(blocks={}), sample_catalogue)

        assert graph.nodes == []
        assert graph.edges == []


class TestEdges:
    """Tests for to_edges()."""

    def test_one_edge_per_connected_input(
        self, chain_pipeline: PipelineModel, sample_catalogue: Catalogue
    ) -> None:
        """Each connected slot becomes an edge from the producer's output handle."""
        edges = to_edges(chain_pipeline, sample_catalogue)

        assert [e.id for e in edges] == ["src-avg-dataset", "avg-out-data"]
        edge = edges[0]
        assert edge.source == "src"
        assert edge.target == "avg"
        assert edge.sourceHandle == "output"
        assert edge.targetHandle == "dataset"
        assert edge.type == "fableEdge"
        assert edge.data == {"inputName": "dataset"}

    def test_unconnected_inputs_produce_no_edge(self, sample_catalogue: Catalogue) -> None:
        """None and empty-string producers are both treated as unconnected."""
        model = PipelineModel(
            blocks={
                "src": block("model"),
                "both": block("combine", a="src", b=None),
                "blank": block("plot", data=""),
            }
        )

        edges = to_edges(model, sample_catalogue)

        assert [e.id for e in edges] == ["src-both-a"]

    def test_edges_in_slot_order(self, sample_catalogue: Catalogue) -> None:
        """Edges into one block follow the order of its input slots."""
        model = PipelineModel(
            blocks={
                "x": block("model"),
                "y": block("model"),
                "c": block("combine", b="y", a="x"),
            }
        )

        assert [e.targetHandle for e in to_edges(model, sample_catalogue)] == ["b", "a"]

    def test_dangling_producer_still_gets_edge(self, sample_catalogue: Catalogue) -> None:
        """Edges are projected from the pipeline; a missing producer is the validator's concern."""
        model = PipelineModel(blocks={"out": block("plot", data="ghost")})

        edges = to_edges(model, sample_catalogue)

        assert [(e.source, e.target) for e in edges] == [("ghost", "out")]


class TestSerialization:
    """Tests for the JSON shape of the graph."""

    def test_catalogue_is_not_serialized(
        self, chain_pipeline: PipelineModel, sample_catalogue: Catalogue
    ) -> None:
        """The in-process catalogue reference never leaks into JSON."""
        graph = to_graph(chain_pipeline, sample_catalogue)

        assert graph.nodes[0].data.catalogue == sample_catalogue
        dumped = graph.model_dump(mode="json")
        assert "catalogue" not in dumped["nodes"][0]["data"]
        assert set(dumped["nodes"][0]["data"]) == {"instanceId", "instance", "factory", "label"}

    def test_edge_keys_are_camel_case(
        self, chain_pipeline: PipelineModel, sample_catalogue: Catalogue
    ) -> None:
        """Edge field names match what React Flow expects."""
        dumped = to_graph(chain_pipeline, sample_catalogue).model_dump(mode="json")

        assert set(dumped["edges"][0]) == {
            "id",
            "source",
            "target",
            "sourceHandle",
            "targetHandle",
            "type",
            "data",
        }

    def test_projection_does_not_mutate_pipeline(
        self, chain_pipeline: PipelineModel, sample_catalogue: Catalogue
    ) -> None:
        """Projecting leaves the pipeline as it was."""
        before = chain_pipeline.model_copy(deep=True)

        to_graph(chain_pipeline, sample_catalogue)

        assert chain_pipeline == before
