"""Selection of the tables taking part in a backup or restore run."""

from typing import Dict, Iterable, List, Optional

from .._utils import logger


def _lookup(name: str, canonical: Dict[str, str], live: List[str]) -> Optional[str]:
    if name in live:
        return name
    return canonical.get(name.lower())


def resolve_tables(
    live_tables: Iterable[str],
    special_tables: Iterable[str] = (),
    requested: Optional[Iterable[str]] = None,
) -> List[str]:
    """Compute the effective table list.

    Args:
        live_tables: Tables currently known to the datastore (or present in an artifact)
        special_tables: Configured names always included, e.g. upper-case tables
            the datastore statistics miss
        requested: Explicit subset chosen by the operator

    Returns:
        Canonically-cased table names without duplicates. With ``requested``,
        names matching no live table are dropped with a warning.
    """
    live = list(dict.fromkeys(live_tables))
    canonical: Dict[str, str] = {}
    for name in live:
        canonical.setdefault(name.lower(), name)

    if requested is not None:
        selected: List[str] = []
        for name in requested:
            resolved = _lookup(name, canonical, live)
            if resolved is None:
                logger.warning(f"Table {name} does not exist, skipping")
            elif resolved not in selected:
                selected.append(resolved)
        return selected

    selected = list(live)
    seen = set(canonical)
    for name in special_tables:
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        selected.append(name)
    return selected
