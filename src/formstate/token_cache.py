"""
Token-based memoisation of a single derived value.

The form bumps an integer token on every mutation; the published FormState
is rebuilt at most once per token no matter how often it is read.
"""

from typing import Callable, Generic, Optional, TypeVar

T = TypeVar('T')


class SingleValueTokenCache(Generic[T]):
    """
    Cache for one value that is valid only while a token is unchanged.

    Example:
        cache = SingleValueTokenCache(lambda: form_token)
        state = cache.get_or_compute(build_state)
    """

    def __init__(self, token_provider: Callable[[], int]):
        """
        Args:
            token_provider: Function that returns the current token value
        """
        self._token_provider = token_provider
        self._cached_value: Optional[T] = None
        self._cached_token: int = -1

    def get_or_compute(self, compute_fn: Callable[[], T]) -> T:
        current_token = self._token_provider()
        if current_token == self._cached_token:
            return self._cached_value

        value = compute_fn()
        self._cached_value = value
        self._cached_token = current_token
        return value
