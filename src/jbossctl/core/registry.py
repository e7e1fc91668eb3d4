import threading
from typing import Dict, Iterable, Iterator, Optional, Tuple

from jbossctl.core.models import TargetDescriptor


class TargetCatalog:
    """
    Immutable, ordered view of the configured targets at one point in time.
    A run holds on to its catalog, so later configuration changes never reach it.
    """
    def __init__(self, targets: Iterable[TargetDescriptor] = ()):
        self._targets: Tuple[TargetDescriptor, ...] = tuple(targets)
        self._by_name: Dict[str, TargetDescriptor] = {t.name: t for t in self._targets}

    def list_targets(self) -> Tuple[TargetDescriptor, ...]:
        return self._targets

    def find_target(self, name: str) -> Optional[TargetDescriptor]:
        return self._by_name.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self) -> Iterator[TargetDescriptor]:
        return iter(self._targets)


class TargetRegistry:
    """
    Name-unique, ordered repository of target descriptors.

    Every mutation builds a new tuple and swaps it in under a lock; readers take
    ``snapshot()`` and never observe a half-applied change.
    """
    def __init__(self, targets: Iterable[TargetDescriptor] = ()):
        self._lock = threading.Lock()
        self._targets: Tuple[TargetDescriptor, ...] = ()
        self.replace_all(targets)

    def register(self, target: TargetDescriptor) -> None:
        """
        Register a target. Raises ValueError if the name already exists.
        """
        with self._lock:
            if any(existing.name == target.name for existing in self._targets):
                raise ValueError(f"Target with name '{target.name}' is already registered.")
            self._targets = self._targets + (target,)

    def replace_all(self, targets: Iterable[TargetDescriptor]) -> None:
        """Replace the whole configuration in one swap."""
        candidate = tuple(targets)
        seen = set()
        for target in candidate:
            if target.name in seen:
                raise ValueError(f"Target with name '{target.name}' is already registered.")
            seen.add(target.name)

        with self._lock:
            self._targets = candidate

    def remove(self, name: str) -> None:
        with self._lock:
            remaining = tuple(t for t in self._targets if t.name != name)
            if len(remaining) == len(self._targets):
                raise KeyError(f"'{name}' not found in registry.")
            self._targets = remaining

    def get(self, name: str) -> TargetDescriptor:
        """
        Retrieve a target by name. Raises KeyError if not found.
        """
        target = self.snapshot().find_target(name)
        if target is None:
            raise KeyError(f"'{name}' not found in registry.")
        return target

    def snapshot(self) -> TargetCatalog:
        return TargetCatalog(self._targets)

    def __contains__(self, name: str) -> bool:
        return name in self.snapshot()

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self) -> Iterator[TargetDescriptor]:
        return iter(self._targets)
