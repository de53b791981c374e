from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Union

from midicsv_huff.errors import ParseError


class CommandClass(IntEnum):
    """2-bit class prefix written before each record body."""

    LITERAL = 0b00
    CONTROL = 0b01
    NOTE_ON = 0b10
    NOTE_OFF = 0b11


class CommandKind(Enum):
    HEADER = ("Header", CommandClass.LITERAL)
    START_TRACK = ("Start_track", CommandClass.LITERAL)
    TITLE_T = ("Title_t", CommandClass.LITERAL)
    TEXT_T = ("Text_t", CommandClass.LITERAL)
    TIME_SIGNATURE = ("Time_signature", CommandClass.LITERAL)
    TEMPO = ("Tempo", CommandClass.LITERAL)
    END_TRACK = ("End_track", CommandClass.LITERAL)
    KEY_SIGNATURE = ("Key_signature", CommandClass.LITERAL)
    CONTROL_C = ("Control_c", CommandClass.CONTROL)
    NOTE_ON_C = ("Note_on_c", CommandClass.NOTE_ON)
    NOTE_OFF_C = ("Note_off_c", CommandClass.NOTE_OFF)
    END_OF_FILE = ("End_of_file", CommandClass.LITERAL)

    @property
    def text(self) -> str:
        return self.value[0]

    @property
    def command_class(self) -> CommandClass:
        return self.value[1]

    @property
    def has_params(self) -> bool:
        return self.command_class is not CommandClass.LITERAL

    @classmethod
    def from_name(cls, name: str) -> CommandKind | None:
        return _BY_NAME.get(name)

    @classmethod
    def from_class(cls, command_class: int) -> CommandKind | None:
        """Resolve one of the parameterized commands from its class prefix."""
        return _BY_CLASS.get(command_class)


_BY_NAME: dict[str, CommandKind] = {c.text: c for c in CommandKind}
_BY_CLASS: dict[int, CommandKind] = {
    int(c.command_class): c for c in CommandKind if c.has_params
}


@dataclass(frozen=True, slots=True)
class Literal:
    """Command name plus every trailing field, kept verbatim."""

    text: str


@dataclass(frozen=True, slots=True)
class Triple:
    a: int
    b: int
    c: int

    def __post_init__(self) -> None:
        for x in (self.a, self.b, self.c):
            if not 0 <= x <= 0xFF:
                raise ParseError(f"parametro fuori range 0..255: {x}")

    @property
    def packed(self) -> int:
        return (self.a << 16) | (self.b << 8) | self.c

    @classmethod
    def from_packed(cls, value: int) -> Triple:
        return cls((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)


Payload = Union[Literal, Triple]


@dataclass(frozen=True, slots=True)
class Record:
    """One midicsv line: track, absolute time, command and its payload."""

    track: int
    time: int
    command: CommandKind
    payload: Payload

    def __post_init__(self) -> None:
        if self.track < 0 or self.time < 0:
            raise ParseError(f"track/time negativi: {self.track}, {self.time}")
        want = Triple if self.command.has_params else Literal
        if not isinstance(self.payload, want):
            raise ParseError(
                f"{self.command.text}: payload {type(self.payload).__name__}, atteso {want.__name__}"
            )
        if isinstance(self.payload, Literal):
            # il decoder risolve il comando dal primo campo del literal
            name = self.payload.text.split(",", 1)[0].strip()
            if name != self.command.text:
                raise ParseError(
                    f"{self.command.text}: il literal inizia con {name!r}, atteso {self.command.text!r}"
                )

    @property
    def packed_params(self) -> int:
        """24-bit payload, or -1 for literal records (not applicable)."""
        if isinstance(self.payload, Triple):
            return self.payload.packed
        return -1
