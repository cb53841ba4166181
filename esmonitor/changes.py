# esmonitor/changes.py
from typing import List, Optional, Sequence

from pydantic import BaseModel

from .models import Index, Node
from .utils import readable_bytes


class ClusterChanges(BaseModel):
    """
    Diferencias entre dos snapshots consecutivos del mismo clúster.
    Las listas quedan en None mientras no haya nada que reportar.
    """
    node_joins: Optional[List[Node]] = None
    node_leaves: Optional[List[Node]] = None
    indices_created: Optional[List[Index]] = None
    indices_deleted: Optional[List[Index]] = None
    doc_delta: int = 0
    data_delta: int = 0

    def add_joining_node(self, node: Node):
        if self.node_joins is None:
            self.node_joins = []
        self.node_joins.append(node)

    def add_leaving_node(self, node: Node):
        if self.node_leaves is None:
            self.node_leaves = []
        self.node_leaves.append(node)

    def add_created_index(self, index: Index):
        if self.indices_created is None:
            self.indices_created = []
        self.indices_created.append(index)

    def add_deleted_index(self, index: Index):
        if self.indices_deleted is None:
            self.indices_deleted = []
        self.indices_deleted.append(index)

    def has_joins(self) -> bool:
        return self.node_joins is not None

    def has_leaves(self) -> bool:
        return self.node_leaves is not None

    def has_created_indices(self) -> bool:
        return self.indices_created is not None

    def has_deleted_indices(self) -> bool:
        return self.indices_deleted is not None

    def has_changes(self) -> bool:
        # los deltas numéricos no cuentan como cambio
        return (self.has_joins() or self.has_leaves() or
                self.has_created_indices() or self.has_deleted_indices())

    def abs_doc_delta(self) -> int:
        return abs(self.doc_delta)

    def abs_data_delta(self) -> str:
        return readable_bytes(abs(self.data_delta))

    def describe(self) -> List[str]:
        """Mensajes legibles de los cambios, en el orden en que se alertan."""
        messages = []
        if self.has_joins():
            joins = [f"{n.name}[{n.transport_address}]" for n in self.node_joins]
            messages.append(f"{len(joins)} nodo(s) nuevos en el clúster: {', '.join(joins)}")
        if self.has_leaves():
            leaves = [f"{n.name}[{n.transport_address}]" for n in self.node_leaves]
            messages.append(f"{len(leaves)} nodo(s) abandonaron el clúster: {', '.join(leaves)}")
        if self.has_created_indices():
            created = [i.name for i in self.indices_created]
            messages.append(f"{len(created)} índices creados: [{','.join(created)}]")
        if self.has_deleted_indices():
            deleted = [i.name for i in self.indices_deleted]
            messages.append(f"{len(deleted)} índices eliminados: [{','.join(deleted)}]")
        return messages


def _missing_from(items: Sequence, others: Sequence) -> list:
    # pertenencia por identidad (__eq__/__hash__ de Node/Index), conservando el orden
    known = set(others)
    return [item for item in items if item not in known]


def compute_changes(current, previous) -> ClusterChanges:
    """Compara el snapshot recién construido con el anterior retenido."""
    changes = ClusterChanges()
    if previous is None or previous.name != current.name:
        return changes

    for node in _missing_from(previous.nodes, current.nodes):
        changes.add_leaving_node(node)
    for node in _missing_from(current.nodes, previous.nodes):
        changes.add_joining_node(node)

    for index in _missing_from(previous.indices, current.indices):
        changes.add_deleted_index(index)
    for index in _missing_from(current.indices, previous.indices):
        changes.add_created_index(index)

    changes.doc_delta = current.num_docs - previous.num_docs
    changes.data_delta = current.total_size_in_bytes - previous.total_size_in_bytes
    return changes
