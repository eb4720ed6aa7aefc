from typing import Union

from graphviz import Digraph

from ._node import Object
from .graph import Graph


def node_id(obj: Object) -> str:
    return str(id(obj))


class Visualizer:
    def __init__(
        self,
        graph: Graph,
        dot: "Digraph | None" = None,
        graph_attrs: Union[dict[str, str], None] = None,
    ):
        self._graph = graph
        self._dot = dot
        self._graph_attrs = graph_attrs

    @property
    def dot(self) -> Union["Digraph", None]:
        return self._dot

    @property
    def view(self) -> Union[Digraph, None]:
        return self.make_graph().dot

    def make_graph(
        self,
        node_attr: Union[dict[str, str], None] = None,
        edge_attr: Union[dict[str, str], None] = None,
    ) -> "Visualizer":
        """Converting the wired object graph to Graphviz visualization

        Args:
            node_attr (dict[str, str], optional): Node attributes. Defaults to {"color": "black"}.
            edge_attr (dict[str, str], optional): Edge attributes. Defaults to {"color": "black"}.

        Returns:
            Visualizer: Visualizer instance
        """
        node_attr = node_attr or {"color": "black"}
        edge_attr = edge_attr or {"color": "black"}
        # always drawn from scratch, the graph may have changed since the last call
        dot = Digraph(comment="Object Graph", graph_attr=self._graph_attrs)

        objects = self._graph.objects()
        drawn: set[str] = set()
        for obj in objects:
            dot.node(node_id(obj), str(obj), **node_attr)
            drawn.add(node_id(obj))

        # Add edges, one per injected field
        for obj in objects:
            for field_name, dep in obj.fields.items():
                if node_id(dep) not in drawn:
                    dot.node(node_id(dep), str(dep), **node_attr)
                    drawn.add(node_id(dep))
                dot.edge(node_id(obj), node_id(dep), label=field_name, **edge_attr)

        return self.__class__(self._graph, dot, self._graph_attrs)

    def save(self, output_path: str, format: str = "png") -> None:
        # Render the graph
        if self._dot is None:
            self.make_graph().save(output_path=output_path, format=format)
            return

        self._dot.render(output_path, format=format, cleanup=True)
