# esmonitor/aliases.py
from typing import List, Sequence, Tuple

from .errors import AliasValidationError
from .models import Alias, IndexAliases, normalize_name


def parse_aliases(response: dict) -> List[IndexAliases]:
    """Convierte la respuesta de _aliases en grupos por índice, omitiendo índices sin aliases."""
    groups = []
    for index_name, info in (response or {}).items():
        index_aliases = (info or {}).get('aliases') or {}
        if not index_aliases:
            continue
        aliases = []
        for name, body in index_aliases.items():
            body = body or {}
            aliases.append(Alias(alias=name, index=index_name, filter=body.get('filter'),
                                 index_routing=body.get('index_routing'), search_routing=body.get('search_routing')))
        groups.append(IndexAliases(index=index_name, aliases=aliases))
    return groups


def diff(original: Sequence[IndexAliases], modified: Sequence[IndexAliases]) -> List[Alias]:
    """
    Aliases de `modified` sin un equivalente estructural en `original`.

    diff(base, copia) da las altas a aplicar y diff(copia, base) las bajas.
    """
    by_index = {group.index: group for group in original}
    differences = []
    for group in modified:
        original_group = by_index.get(group.index)
        if original_group is None:
            differences.extend(group.aliases)
            continue
        differences.extend(alias for alias in group.aliases if alias not in original_group.aliases)
    return differences


def reconcile(baseline: Sequence[IndexAliases], working: Sequence[IndexAliases]) -> Tuple[List[Alias], List[Alias]]:
    return diff(baseline, working), diff(working, baseline)


def alias_actions(adds: Sequence[Alias], removes: Sequence[Alias]) -> dict:
    """Cuerpo para POST /_aliases: primero las bajas, luego las altas."""
    actions = [{'remove': alias.info()} for alias in removes]
    actions.extend({'add': alias.info()} for alias in adds)
    return {'actions': actions}


# --- Edición de la copia de trabajo ---

def add_alias(collection: List[IndexAliases], alias: Alias) -> List[IndexAliases]:
    alias.ensure_valid()
    group = next((g for g in collection if g.index == alias.index), None)
    if group is None:
        collection.append(IndexAliases(index=alias.index, aliases=[alias]))
    elif any(a.alias == alias.alias for a in group.aliases):
        raise AliasValidationError(f"El alias '{alias.alias}' ya está asociado al índice '{alias.index}'")
    else:
        group.aliases.append(alias)
    return collection


def remove_alias(collection: List[IndexAliases], index: str, alias: str) -> List[IndexAliases]:
    index, alias = normalize_name(index), normalize_name(alias)
    for group in collection:
        if group.index == index:
            group.aliases = [a for a in group.aliases if a.alias != alias]
            if not group.aliases:
                collection.remove(group)
            break
    return collection


def remove_index_aliases(collection: List[IndexAliases], index: str) -> List[IndexAliases]:
    index = normalize_name(index)
    collection[:] = [group for group in collection if group.index != index]
    return collection
