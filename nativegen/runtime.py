"""Native-style containers used by generated mirror structs.

Containers are allocated explicitly with an :class:`Allocator` and must be
released with ``dispose()``. Touching a container that was never allocated,
or that has already been disposed, raises :class:`ObjectDisposedError`; the
generated ``dispose()`` methods guard every release with ``is_created``.
"""

from __future__ import annotations

import enum
from typing import Any, Dict, Generic, Iterable, Iterator, Optional, Tuple, TypeVar

import numpy as np

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")

_DTYPES: Dict[type, type] = {
    bool: np.bool_,
    int: np.int64,
    float: np.float64,
}


class Allocator(enum.Enum):
    NONE = 0
    TEMP = 1
    TEMP_JOB = 2
    PERSISTENT = 3


class ObjectDisposedError(RuntimeError):
    """Raised when an unallocated or disposed container is accessed."""


def resolve_dtype(element_type: Any) -> np.dtype:
    """Return the numpy dtype backing a container of ``element_type``."""
    if element_type in _DTYPES:
        return np.dtype(_DTYPES[element_type])
    if isinstance(element_type, type) and issubclass(element_type, np.generic):
        return np.dtype(element_type)
    return np.dtype(object)


def _check_allocator(allocator: Allocator) -> None:
    if not isinstance(allocator, Allocator) or allocator is Allocator.NONE:
        raise ValueError(f"Containers need a real allocator, got {allocator!r}")


class NativeArray(Generic[T]):
    """Fixed-length array over a contiguous numpy buffer."""

    __slots__ = ("element_type", "allocator", "_buffer")

    def __init__(
        self,
        element_type: Any,
        length: int,
        allocator: Allocator = Allocator.PERSISTENT,
    ) -> None:
        if length < 0:
            raise ValueError(f"Length must be non-negative, got {length}")
        _check_allocator(allocator)
        self.element_type = element_type
        self.allocator = allocator
        dtype = resolve_dtype(element_type)
        if dtype == np.dtype(object):
            self._buffer: Optional[np.ndarray] = np.empty(length, dtype=object)
        else:
            self._buffer = np.zeros(length, dtype=dtype)

    @classmethod
    def unallocated(cls, element_type: Any) -> "NativeArray[Any]":
        """Return a handle with no backing storage."""
        array = cls.__new__(cls)
        array.element_type = element_type
        array.allocator = Allocator.NONE
        array._buffer = None
        return array

    @property
    def is_created(self) -> bool:
        return self._buffer is not None

    @property
    def length(self) -> int:
        return len(self._require())

    def __len__(self) -> int:
        return self.length

    def __getitem__(self, index: int) -> T:
        buffer = self._require()
        return buffer[self._check_index(index, len(buffer))]

    def __setitem__(self, index: int, value: T) -> None:
        buffer = self._require()
        buffer[self._check_index(index, len(buffer))] = value

    def __iter__(self) -> Iterator[T]:
        return iter(self._require())

    def to_list(self) -> list:
        return self._require().tolist()

    def as_array(self) -> np.ndarray:
        """Return a read-only view of the backing buffer."""
        view = self._require().view()
        view.flags.writeable = False
        return view

    def dispose(self) -> None:
        self._require()
        self._buffer = None
        self.allocator = Allocator.NONE

    def __repr__(self) -> str:
        if self._buffer is None:
            return f"NativeArray({_type_name(self.element_type)}, unallocated)"
        return f"NativeArray({_type_name(self.element_type)}, {self._buffer.tolist()!r})"

    def _require(self) -> np.ndarray:
        if self._buffer is None:
            raise ObjectDisposedError("NativeArray has not been allocated or was already disposed")
        return self._buffer

    @staticmethod
    def _check_index(index: int, length: int) -> int:
        if not 0 <= index < length:
            raise IndexError(f"Index {index} is out of range of '{length}' length")
        return index


class NativeHashMap(Generic[K, V]):
    """Flat key/value map with an explicit capacity."""

    __slots__ = ("key_type", "value_type", "allocator", "_capacity", "_items")

    def __init__(
        self,
        key_type: Any,
        value_type: Any,
        capacity: int,
        allocator: Allocator = Allocator.PERSISTENT,
    ) -> None:
        if capacity < 0:
            raise ValueError(f"Capacity must be non-negative, got {capacity}")
        _check_allocator(allocator)
        self.key_type = key_type
        self.value_type = value_type
        self.allocator = allocator
        self._capacity = capacity
        self._items: Optional[Dict[K, V]] = {}

    @classmethod
    def unallocated(cls, key_type: Any, value_type: Any) -> "NativeHashMap[Any, Any]":
        """Return a handle with no backing storage."""
        mapping = cls.__new__(cls)
        mapping.key_type = key_type
        mapping.value_type = value_type
        mapping.allocator = Allocator.NONE
        mapping._capacity = 0
        mapping._items = None
        return mapping

    @property
    def is_created(self) -> bool:
        return self._items is not None

    @property
    def capacity(self) -> int:
        self._require()
        return self._capacity

    def add(self, key: K, value: V) -> None:
        if not self.try_add(key, value):
            raise ValueError(f"An item with the same key has already been added: {key!r}")

    def try_add(self, key: K, value: V) -> bool:
        items = self._require()
        if key in items:
            return False
        if len(items) >= self._capacity:
            self._capacity = max(1, self._capacity * 2)
        items[key] = value
        return True

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        return self._require().get(key, default)

    def remove(self, key: K) -> bool:
        return self._require().pop(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        self._require().clear()

    def items(self) -> Iterable[Tuple[K, V]]:
        return self._require().items()

    def keys(self) -> Iterable[K]:
        return self._require().keys()

    def values(self) -> Iterable[V]:
        return self._require().values()

    def __getitem__(self, key: K) -> V:
        return self._require()[key]

    def __contains__(self, key: object) -> bool:
        return key in self._require()

    def __len__(self) -> int:
        return len(self._require())

    def __iter__(self) -> Iterator[K]:
        return iter(self._require())

    def dispose(self) -> None:
        self._require()
        self._items = None
        self._capacity = 0
        self.allocator = Allocator.NONE

    def __repr__(self) -> str:
        key_name = _type_name(self.key_type)
        value_name = _type_name(self.value_type)
        if self._items is None:
            return f"NativeHashMap({key_name}, {value_name}, unallocated)"
        return f"NativeHashMap({key_name}, {value_name}, {self._items!r})"

    def _require(self) -> Dict[K, V]:
        if self._items is None:
            raise ObjectDisposedError("NativeHashMap has not been allocated or was already disposed")
        return self._items


_MISSING = object()


class _FloatVector:
    """Immutable fixed-width float32 vector, usable as a map key."""

    __slots__ = ("_data",)
    _COMPONENTS: Tuple[str, ...] = ()

    def __init__(self, *components: float) -> None:
        width = len(self._COMPONENTS)
        if components and len(components) != width:
            raise TypeError(f"{type(self).__name__} takes {width} components, got {len(components)}")
        values = components or (0.0,) * width
        self._data = np.array(values, dtype=np.float32)
        self._data.flags.writeable = False

    def _component(self, index: int) -> float:
        return float(self._data[index])

    def as_array(self) -> np.ndarray:
        return self._data.copy()

    def __iter__(self) -> Iterator[float]:
        return (float(value) for value in self._data)

    def __len__(self) -> int:
        return len(self._COMPONENTS)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _FloatVector):
            return type(self) is type(other) and bool(np.array_equal(self._data, other._data))
        if isinstance(other, tuple):
            return tuple(self) == other
        return NotImplemented

    def __hash__(self) -> int:
        # Matches the hash of the equal component tuple.
        return hash(tuple(self))

    def __repr__(self) -> str:
        values = ", ".join(repr(value) for value in self)
        return f"{type(self).__name__}({values})"


class float2(_FloatVector):
    __slots__ = ()
    _COMPONENTS = ("x", "y")

    x = property(lambda self: self._component(0))
    y = property(lambda self: self._component(1))


class float3(_FloatVector):
    __slots__ = ()
    _COMPONENTS = ("x", "y", "z")

    x = property(lambda self: self._component(0))
    y = property(lambda self: self._component(1))
    z = property(lambda self: self._component(2))


def _type_name(value: Any) -> str:
    return getattr(value, "__name__", repr(value))


__all__ = [
    "Allocator",
    "NativeArray",
    "NativeHashMap",
    "ObjectDisposedError",
    "float2",
    "float3",
    "resolve_dtype",
]
