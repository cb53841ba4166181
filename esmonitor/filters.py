# esmonitor/filters.py
import re
from typing import Literal

from pydantic import BaseModel

from .utils import not_empty


class Filter(BaseModel):
    """
    Criterio de filtrado para un Paginator.
    La igualdad por valor la aporta pydantic; clone() devuelve una copia independiente.
    """
    kind: str = 'noop'

    def is_blank(self) -> bool:
        raise NotImplementedError

    def matches(self, item) -> bool:
        raise NotImplementedError

    def clone(self):
        return self.model_copy(deep=True)


class NoOpFilter(Filter):
    kind: Literal['noop'] = 'noop'

    def is_blank(self) -> bool:
        return True

    def matches(self, item) -> bool:
        return True


class SnapshotFilter(NoOpFilter):
    kind: Literal['snapshot'] = 'snapshot'


class IndexFilter(Filter):
    kind: Literal['index'] = 'index'
    name: str = ''
    state: str = ''
    hide_special: bool = False
    timestamp: int = 0

    def is_blank(self) -> bool:
        return not not_empty(self.name) and not not_empty(self.state) and not self.hide_special

    def _matches_name(self, index_name: str) -> bool:
        try:
            return re.search(self.name.strip(), index_name, re.IGNORECASE) is not None
        except re.error:
            # una expresión inválida se degrada a búsqueda literal
            return self.name.strip().lower() in index_name.lower()

    def matches(self, index) -> bool:
        if self.is_blank():
            return True
        if self.hide_special and index.special:
            return False
        if self.state == 'unhealthy' and not index.unhealthy:
            return False
        if self.state in ('open', 'close') and self.state != index.state:
            return False
        if not_empty(self.name):
            return self._matches_name(index.name)
        return True


class NodeFilter(Filter):
    kind: Literal['node'] = 'node'
    name: str = ''
    data: bool = True
    master: bool = True
    client: bool = True
    timestamp: int = 0

    def is_blank(self) -> bool:
        return not not_empty(self.name) and self.data and self.master and self.client

    def matches_name(self, name: str) -> bool:
        if not not_empty(self.name):
            return True
        return self.name.lower() in name.lower()

    def matches_type(self, node) -> bool:
        return (node.data and self.data) or (node.master and self.master) or (node.client and self.client)

    def matches(self, node) -> bool:
        if self.is_blank():
            return True
        return self.matches_name(node.name) and self.matches_type(node)


class AliasFilter(Filter):
    kind: Literal['alias'] = 'alias'
    index: str = ''
    alias: str = ''

    def is_blank(self) -> bool:
        return not not_empty(self.index) and not not_empty(self.alias)

    def matches(self, index_aliases) -> bool:
        if self.is_blank():
            return True
        if not_empty(self.index) and self.index not in index_aliases.index:
            return False
        if not_empty(self.alias):
            return any(self.alias in a.alias for a in index_aliases.aliases)
        return True


class WarmerFilter(Filter):
    kind: Literal['warmer'] = 'warmer'
    id: str = ''

    def is_blank(self) -> bool:
        return not not_empty(self.id)

    def matches(self, warmer) -> bool:
        if self.is_blank():
            return True
        return self.id in warmer.id
