"""
Ringside Context - ActorCell
============================
Mutable reference to the acting administrator's name.

One cell is shared by reference between the identity gate, the
identity prompt and the admin service. Reads are synchronous and
always return the most recently saved value, so a continuation that
runs right after the prompt saves a name sees that name.
"""

from __future__ import annotations

import logging


logger = logging.getLogger("ringside.identity")


class ActorCell:
    def __init__(self, name: str = "") -> None:
        self._name = ""
        if name:
            self.set(name)

    def get(self) -> str:
        return self._name

    def set(self, name: str) -> None:
        if not isinstance(name, str):
            raise ValueError("actor name must be a string.")
        self._name = name.strip()
        logger.debug(f"Actor set to '{self._name}'")

    def clear(self) -> None:
        self._name = ""

    @property
    def is_set(self) -> bool:
        return bool(self._name)

    def __repr__(self) -> str:
        return f"ActorCell({self._name!r})"
