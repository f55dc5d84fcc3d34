"""Ordered, multi-valued string parameters.

``Parameters`` is the container used for every header and query value read
or written during the OAuth 1.0a handshake. It maps a name to an ordered list
of values and is fixed as either case-sensitive or case-insensitive when it
is created.

Instances are immutable once built and are safe to share between tasks.
``ParametersBuilder`` accumulates values and is single use: ``build()`` may
be called once, after which the builder rejects further changes.

Case-insensitive stores key their storage by the lower-cased name but keep
the spelling that was first appended, so iteration and serialization see the
original header names.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Callable

from oauth1_login.exceptions import BuilderMisuseError, ConfigurationError

Predicate = Callable[[str, str], bool]


def _normalize(name: str, case_insensitive_key: bool) -> str:
    return name.lower() if case_insensitive_key else name


class Parameters:
    """Read interface shared by all parameter stores.

    Subclasses implement ``get_all``, ``entries`` and ``is_empty``; everything
    else is derived from those.
    """

    EMPTY: Parameters

    case_insensitive_key: bool = False

    def get_all(self, name: str) -> list[str] | None:
        raise NotImplementedError

    def entries(self) -> list[tuple[str, list[str]]]:
        raise NotImplementedError

    def is_empty(self) -> bool:
        raise NotImplementedError

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the first value for ``name``, or ``default``."""
        values = self.get_all(name)
        if not values:
            return default
        return values[0]

    def contains(self, name: str, value: str | None = None) -> bool:
        values = self.get_all(name)
        if values is None:
            return False
        if value is None:
            return True
        return value in values

    def names(self) -> set[str]:
        return {name for name, _ in self.entries()}

    def for_each(self, body: Callable[[str, list[str]], None]) -> None:
        for name, values in self.entries():
            body(name, values)

    def filter(self, predicate: Predicate, keep_empty: bool = False) -> Parameters:
        """Return a new store holding only values where ``predicate(name, value)``.

        Names whose filtered list ends up empty are dropped unless
        ``keep_empty`` is set.
        """
        values: dict[str, tuple[str, list[str]]] = {}
        for name, entry_values in self.entries():
            kept = [v for v in entry_values if predicate(name, v)]
            if keep_empty or kept:
                values[_normalize(name, self.case_insensitive_key)] = (name, kept)
        return _ParametersImpl(self.case_insensitive_key, values)

    def to_dict(self) -> dict[str, list[str]]:
        return {name: list(values) for name, values in self.entries()}

    def flatten_entries(self) -> list[tuple[str, str]]:
        """Expand to ``(name, value)`` pairs, one per value, in order."""
        return [(name, value) for name, values in self.entries() for value in values]

    def __getitem__(self, name: str) -> str:
        values = self.get_all(name)
        if not values:
            raise KeyError(name)
        return values[0]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get_all(name) is not None

    def __iter__(self) -> Iterator[str]:
        return iter([name for name, _ in self.entries()])

    def __len__(self) -> int:
        return len(self.entries())

    def __bool__(self) -> bool:
        return not self.is_empty()

    def __add__(self, other: Parameters) -> Parameters:
        if not isinstance(other, Parameters):
            return NotImplemented
        if self.case_insensitive_key != other.case_insensitive_key:
            raise ConfigurationError(
                "It is forbidden to concatenate case sensitive and "
                "case insensitive parameters"
            )
        if self.is_empty():
            return other
        if other.is_empty():
            return self
        builder = ParametersBuilder(self.case_insensitive_key)
        builder.append_all(self)
        builder.append_all(other)
        return builder.build()

    def _entry_key(self) -> frozenset[tuple[str, tuple[str, ...]]]:
        return frozenset(
            (_normalize(name, self.case_insensitive_key), tuple(values))
            for name, values in self.entries()
        )

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Parameters):
            return NotImplemented
        if self.case_insensitive_key != other.case_insensitive_key:
            return False
        return self._entry_key() == other._entry_key()

    def __hash__(self) -> int:
        return hash((self.case_insensitive_key, self._entry_key()))

    def __repr__(self) -> str:
        case = not self.case_insensitive_key
        body = ", ".join(f"{name}={values}" for name, values in self.entries())
        return f"Parameters(case={case}) [{body}]"


class _ParametersImpl(Parameters):
    """General representation backed by a dict of ``key -> (name, values)``."""

    def __init__(
        self,
        case_insensitive_key: bool = False,
        values: dict[str, tuple[str, list[str]]] | None = None,
    ):
        self.case_insensitive_key = case_insensitive_key
        self._values = values if values is not None else {}

    def get_all(self, name: str) -> list[str] | None:
        entry = self._values.get(_normalize(name, self.case_insensitive_key))
        if entry is None:
            return None
        return list(entry[1])

    def contains(self, name: str, value: str | None = None) -> bool:
        entry = self._values.get(_normalize(name, self.case_insensitive_key))
        if entry is None:
            return False
        return value is None or value in entry[1]

    def entries(self) -> list[tuple[str, list[str]]]:
        return [(name, list(values)) for name, values in self._values.values()]

    def names(self) -> set[str]:
        return {name for name, _ in self._values.values()}

    def is_empty(self) -> bool:
        return not self._values

    def __len__(self) -> int:
        return len(self._values)


class _SingleParameters(Parameters):
    """Store holding exactly one name; avoids building a dict."""

    def __init__(self, case_insensitive_key: bool, name: str, values: Iterable[str]):
        self.case_insensitive_key = case_insensitive_key
        self._name = name
        self._values = tuple(values)

    def _matches(self, name: str) -> bool:
        if self.case_insensitive_key:
            return name.lower() == self._name.lower()
        return name == self._name

    def get_all(self, name: str) -> list[str] | None:
        return list(self._values) if self._matches(name) else None

    def get(self, name: str, default: str | None = None) -> str | None:
        if self._matches(name) and self._values:
            return self._values[0]
        return default

    def contains(self, name: str, value: str | None = None) -> bool:
        if not self._matches(name):
            return False
        return value is None or value in self._values

    def entries(self) -> list[tuple[str, list[str]]]:
        return [(self._name, list(self._values))]

    def names(self) -> set[str]:
        return {self._name}

    def for_each(self, body: Callable[[str, list[str]], None]) -> None:
        body(self._name, list(self._values))

    def is_empty(self) -> bool:
        return False

    def __len__(self) -> int:
        return 1


Parameters.EMPTY = _ParametersImpl()
EMPTY = Parameters.EMPTY


class ParametersBuilder:
    """Mutable accumulator for a ``Parameters`` store.

    Not safe for concurrent use. ``build()`` hands the accumulated values to
    an immutable store; the builder cannot be used afterwards.
    """

    def __init__(self, case_insensitive_key: bool = False):
        self.case_insensitive_key = case_insensitive_key
        self._values: dict[str, tuple[str, list[str]]] = {}
        self._built = False

    def _check_active(self) -> None:
        if self._built:
            raise BuilderMisuseError("ParametersBuilder can only build a single Parameters")

    def _key(self, name: str) -> str:
        return _normalize(name, self.case_insensitive_key)

    def _list_for(self, name: str) -> list[str] | None:
        entry = self._values.get(self._key(name))
        return entry[1] if entry is not None else None

    def _ensure_list(self, name: str) -> list[str]:
        self._check_active()
        key = self._key(name)
        entry = self._values.get(key)
        if entry is None:
            entry = (name, [])
            self._values[key] = entry
        return entry[1]

    def get(self, name: str) -> str | None:
        values = self._list_for(name)
        return values[0] if values else None

    def get_all(self, name: str) -> list[str] | None:
        values = self._list_for(name)
        return list(values) if values is not None else None

    def contains(self, name: str, value: str | None = None) -> bool:
        values = self._list_for(name)
        if values is None:
            return False
        return value is None or value in values

    def names(self) -> set[str]:
        return {name for name, _ in self._values.values()}

    def entries(self) -> list[tuple[str, list[str]]]:
        return [(name, list(values)) for name, values in self._values.values()]

    def is_empty(self) -> bool:
        return not self._values

    def set(self, name: str, value: str) -> None:
        """Replace all values of ``name`` with ``value``."""
        values = self._ensure_list(name)
        values.clear()
        values.append(value)

    def append(self, name: str, value: str) -> None:
        self._ensure_list(name).append(value)

    def append_all(
        self, name_or_parameters: str | Parameters, values: Iterable[str] | None = None
    ) -> None:
        """Append values for one name, or every entry of another store."""
        if isinstance(name_or_parameters, Parameters):
            for name, entry_values in name_or_parameters.entries():
                self._ensure_list(name).extend(entry_values)
            return
        if values is None:
            raise TypeError("append_all(name, values) requires values")
        self._ensure_list(name_or_parameters).extend(values)

    def append_missing(
        self, name_or_parameters: str | Parameters, values: Iterable[str] | None = None
    ) -> None:
        """Append only the values not already present under the name."""
        if isinstance(name_or_parameters, Parameters):
            for name, entry_values in name_or_parameters.entries():
                self.append_missing(name, entry_values)
            return
        if values is None:
            raise TypeError("append_missing(name, values) requires values")
        existing = set(self._list_for(name_or_parameters) or ())
        self.append_all(name_or_parameters, [v for v in values if v not in existing])

    def append_filtered(
        self, source: Parameters, predicate: Predicate, keep_empty: bool = False
    ) -> None:
        for name, entry_values in source.entries():
            kept = [v for v in entry_values if predicate(name, v)]
            if keep_empty or kept:
                self.append_all(name, kept)

    def remove(self, name: str) -> None:
        self._check_active()
        self._values.pop(self._key(name), None)

    def remove_value(self, name: str, value: str) -> bool:
        self._check_active()
        values = self._list_for(name)
        if values is None or value not in values:
            return False
        values.remove(value)
        return True

    def remove_keys_with_no_entries(self) -> None:
        self._check_active()
        for key in [k for k, (_, values) in self._values.items() if not values]:
            del self._values[key]

    def clear(self) -> None:
        self._check_active()
        self._values.clear()

    def build(self) -> Parameters:
        self._check_active()
        self._built = True
        if not self._values and not self.case_insensitive_key:
            return EMPTY
        return _ParametersImpl(self.case_insensitive_key, self._values)


def build_parameters(
    body: Callable[[ParametersBuilder], None], case_insensitive_key: bool = False
) -> Parameters:
    """Create a store by running ``body`` against a fresh builder."""
    builder = ParametersBuilder(case_insensitive_key)
    body(builder)
    return builder.build()


def parameters_of(*args, case_insensitive_key: bool = False) -> Parameters:
    """Construct a store from names and value lists.

    Accepted forms::

        parameters_of()                                  # EMPTY
        parameters_of("name", ["v1", "v2"])              # single name
        parameters_of(("name", ["v1"]))                  # single pair
        parameters_of(("a", ["1"]), ("b", ["2"]))        # many pairs
        parameters_of({"a": ["1"], "b": ["2"]})          # mapping

    Single-name forms return the lightweight single-key store.
    """
    if not args:
        return EMPTY

    if len(args) == 2 and isinstance(args[0], str):
        name, values = args
        return _SingleParameters(case_insensitive_key, name, values)

    if len(args) == 1 and isinstance(args[0], Mapping):
        mapping = args[0]
        if len(mapping) == 1:
            ((name, values),) = mapping.items()
            return _SingleParameters(case_insensitive_key, name, values)
        pairs: Iterable[tuple[str, Iterable[str]]] = mapping.items()
    elif len(args) == 1:
        name, values = args[0]
        return _SingleParameters(case_insensitive_key, name, values)
    else:
        pairs = args

    # Later pairs with the same key replace earlier ones, matching dict semantics.
    values_by_key: dict[str, tuple[str, list[str]]] = {}
    for name, values in pairs:
        key = _normalize(name, case_insensitive_key)
        previous = values_by_key.get(key)
        original = previous[0] if previous is not None else name
        values_by_key[key] = (original, list(values))
    if not values_by_key and not case_insensitive_key:
        return EMPTY
    return _ParametersImpl(case_insensitive_key, values_by_key)
