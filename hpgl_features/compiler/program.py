"""Compiled program containers.

A :class:`Program` is the complete, ordered features plot: a tuple of
named :class:`Stage` objects, each carrying its share of the progress bar
and its HPGL command strings.  Both are frozen; a program can be iterated
as many times as needed and is never consumed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True, slots=True)
class Stage:
    """One named block of the program.

    Parameters
    ----------
    name : str
        Stage name reported to the progress sink.
    percent : int
        Progress increment credited once the stage is sent.
    commands : tuple[str, ...]
        HPGL lines, in transmission order.
    """

    name: str
    percent: int
    commands: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Program:
    """Ordered stages of the features plot."""

    stages: tuple[Stage, ...]

    @property
    def commands(self) -> tuple[str, ...]:
        """All commands of all stages, flattened in order."""
        return tuple(cmd for stage in self.stages for cmd in stage.commands)

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def stage(self, name: str) -> Stage:
        """Look up a stage by name.

        Raises
        ------
        KeyError
            If no stage has that name.
        """
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)

    def to_text(self, terminator: str = "\n") -> str:
        """Render the program as one text blob, one command per line."""
        return "".join(cmd + terminator for cmd in self.commands)

    def __iter__(self) -> Iterator[str]:
        return iter(self.commands)

    def __len__(self) -> int:
        return sum(len(stage.commands) for stage in self.stages)
