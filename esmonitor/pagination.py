# esmonitor/pagination.py
from typing import Generic, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict

from .filters import Filter, NoOpFilter

T = TypeVar('T')


class Page(BaseModel, Generic[T]):
    """Vista inmutable de una página; elements siempre tiene page_size posiciones."""
    model_config = ConfigDict(frozen=True)

    elements: List[Optional[T]]
    total: int
    first: int
    last: int
    next: bool
    previous: bool


class Paginator(Generic[T]):
    """Pagina y filtra una colección. La página se deriva en cada get_page(), nunca se guarda."""

    def __init__(self, page: int = 1, page_size: int = 10, collection: Optional[Sequence[T]] = None,
                 filter: Optional[Filter] = None):
        if page < 1:
            raise ValueError("page debe ser >= 1")
        if page_size < 1:
            raise ValueError("page_size debe ser > 0")
        self.page = page
        self.page_size = page_size
        self.filter = filter if filter is not None else NoOpFilter()
        self._collection = list(collection) if collection is not None else []

    def next_page(self):
        self.page += 1

    def previous_page(self):
        if self.page > 1:
            self.page -= 1

    def set_page_size(self, page_size: int):
        if page_size < 1:
            raise ValueError("page_size debe ser > 0")
        self.page_size = page_size

    def set_collection(self, collection: Sequence[T]):
        self._collection = list(collection)

    def get_collection(self) -> List[T]:
        return self._collection

    def set_filter(self, filter: Filter):
        self.filter = filter

    def get_results(self) -> List[T]:
        if self.filter.is_blank():
            return self._collection
        return [item for item in self._collection if self.filter.matches(item)]

    def get_page(self) -> Page[T]:
        results = self.get_results()
        total = len(results)

        if total == 0:
            self.page = 1
        first = (self.page - 1) * self.page_size + 1 if total > 0 else 0
        # si el filtro redujo la colección, retrocede hasta una página válida
        while first > total and self.page > 1:
            self.page -= 1
            first = (self.page - 1) * self.page_size + 1

        last = min(self.page * self.page_size, total)
        elements: List[Optional[T]] = list(results[first - 1:last]) if total > 0 else []
        elements.extend([None] * (self.page_size - len(elements)))

        return Page(
            elements=elements,
            total=total,
            first=first,
            last=last,
            next=self.page * self.page_size < total,
            previous=self.page > 1,
        )
