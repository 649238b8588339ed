from typing import Callable, Protocol, TypeVar, TypeAlias

T = TypeVar('T')


class SupportsOrder(Protocol):
    def __lt__(self: T, other: T) -> bool:
        pass


class SupportsPermutationValue(Protocol):
    """Anything that can be counted, copied into a permutation and printed."""

    def __eq__(self: T, other: object) -> bool:
        pass

    def __hash__(self: T) -> int:
        pass

    def __str__(self: T) -> str:
        pass


HashableT = TypeVar('HashableT', bound=SupportsPermutationValue)

FrequencyMap: TypeAlias = dict[HashableT, int]
Permutation: TypeAlias = tuple[HashableT, ...]
SortKey: TypeAlias = Callable[[HashableT], SupportsOrder]
Formatter: TypeAlias = Callable[[Permutation], str]
