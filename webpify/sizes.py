from __future__ import annotations

import re


# Binary multiples, the way "10KB" is usually meant for file sizes.
_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024 ** 2,
    "mb": 1024 ** 2,
    "mib": 1024 ** 2,
    "g": 1024 ** 3,
    "gb": 1024 ** 3,
    "gib": 1024 ** 3,
    "t": 1024 ** 4,
    "tb": 1024 ** 4,
    "tib": 1024 ** 4,
}

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([a-z]*)\s*$", re.IGNORECASE)

# Largest first, used for formatting.
_SUFFIXES = (
    (1024 ** 4, "TB"),
    (1024 ** 3, "GB"),
    (1024 ** 2, "MB"),
    (1024, "KB"),
)


class ByteSize(int):
    """
    A byte count.

    ByteSize.parse("10KB") == 10240
    str(ByteSize(10240)) == "10KB"
    ByteSize(51200).human_readable() == "50.0 KB"
    """

    @classmethod
    def parse(cls, text: str) -> "ByteSize":
        m = _SIZE_RE.match(str(text))
        if not m:
            raise ValueError(f"{text!r} is not a valid file size")

        number, unit = m.groups()
        multiplier = _UNITS.get(unit.lower())
        if multiplier is None:
            raise ValueError(f"{text!r} has an unknown size unit {unit!r}")

        return cls(int(number) * multiplier)

    @property
    def bytes(self) -> int:
        return int(self)

    def human_readable(self) -> str:
        n = int(self)
        for factor, suffix in _SUFFIXES:
            if n >= factor:
                return f"{n / factor:.1f} {suffix}"
        return f"{n} B"

    def __str__(self) -> str:
        # Exact, compact form: the largest unit that divides evenly.
        n = int(self)
        for factor, suffix in _SUFFIXES:
            if n and n % factor == 0:
                return f"{n // factor}{suffix}"
        return f"{n}B"

    def __repr__(self) -> str:
        return f"ByteSize({int(self)})"
