"""Propagation of settings changes into components.

A component declares the slice of the root settings it depends on. When
new settings arrive it extracts that slice and only reacts if the slice
actually changed, so a tempo edit does not disturb anything that ignores
tempo.
"""

import logging
from abc import ABCMeta, abstractmethod
from typing import Any, Generic, Optional, Type, TypeVar, override

S = TypeVar("S")
"""Type variable for the root settings type."""
X = TypeVar("X", bound="SettingsSlice[Any]")
"""Type variable for a component's slice of the settings."""
R = TypeVar("R")
"""Type variable for what a component returns when it reacts."""
K = TypeVar("K", bound="SettingsListener[Any, Any]")
"""Type variable for component types."""


class SettingsSlice(Generic[S], metaclass=ABCMeta):
    """The part of the root settings that one component depends on."""

    @classmethod
    @abstractmethod
    def extract(cls: Type[X], settings: S) -> X:
        """Cut this slice out of the root settings."""
        raise NotImplementedError()


class SettingsListener(Generic[S, R], metaclass=ABCMeta):
    """Something that reacts to new root settings."""

    @abstractmethod
    def handle_settings(self, settings: S, reset: bool) -> Optional[R]:
        """React to new settings.

        Args:
            settings: The new root settings.
            reset: React even if nothing relevant changed.

        Returns:
            Whatever the component produces when it reacts, else None.
        """
        raise NotImplementedError()


class SlicedComponent(Generic[S, X, R], SettingsListener[S, R]):
    """Listener that keeps its own slice of the settings.

    Subclasses implement :meth:`extract_slice` and :meth:`handle_slice`;
    the current slice is available as ``self._slice``.
    """

    @classmethod
    @abstractmethod
    def extract_slice(cls: Type[K], settings: S) -> X:
        raise NotImplementedError()

    def __init__(self, settings_slice: X) -> None:
        self._slice = settings_slice

    @abstractmethod
    def handle_slice(self, settings_slice: X) -> R:
        """React to a changed slice. Implementations must store it."""
        raise NotImplementedError()

    @override
    def handle_settings(self, settings: S, reset: bool) -> Optional[R]:
        new_slice = type(self).extract_slice(settings)
        if new_slice == self._slice and not reset:
            logging.debug("%s unaffected by settings change", type(self).__name__)
            return None
        return self.handle_slice(new_slice)
