from typing import Iterable, Set


def reconcile_buckets(
    official: Iterable[str],
    github: Iterable[str],
    manual_config: Iterable[str],
    manual_list: Iterable[str],
    ignore_config: Iterable[str],
    ignore_list: Iterable[str],
) -> Set[str]:
    """
    (official ∪ github ∪ manual) − ignored
    """
    buckets = set(official) | set(github) | set(manual_config) | set(manual_list)
    return buckets - set(ignore_config) - set(ignore_list)
