#
# Copyright (c) 2019 Matthias Tafelmeier.
#
# This file is part of godon
#
# godon is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# godon is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this godon. If not, see <http://www.gnu.org/licenses/>.
#

from enum import Enum
from typing import Any


class Operator(str, Enum):
    """Reconciliation operator declared next to a recommended value"""

    EQUAL = '='
    LESS = '<'
    GREATER = '>'

    @classmethod
    def parse(cls, text: str) -> 'Operator':
        symbol = (text or '=').strip()
        for operator in cls:
            if operator.value == symbol:
                return operator
        raise ValueError(f"Unknown reconciliation operator '{text}', expected one of: =, <, >")


class Undeterminable:
    """
    Marks a value that could not be determined on this system.

    Kept apart from the string domain so a device reporting the literal
    text "NA" is never mistaken for it.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'NA'

    def __str__(self) -> str:
        return 'NA'

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (Undeterminable, ())


NA = Undeterminable()

# textual marker a note may carry inside a value, e.g. "@sdba soft nofile NA"
NA_MARKER = 'NA'


def is_na(value: Any) -> bool:
    return value is NA
