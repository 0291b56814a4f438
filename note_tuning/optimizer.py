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

import logging
import os
from typing import Any, Mapping

from note_tuning.errors import ApplyError
from note_tuning.operators import NA, is_na
from note_tuning.parameter import Parameter

logger = logging.getLogger(__name__)


def dropin_prefix() -> str:
    return os.environ.get('NOTETUNE_DROPIN_PREFIX', 'godon')


class Optimizer:
    """
    Inspect / Optimise / Apply triad shared by all parameter kinds.

    inspect() reads the live value and never mutates the system, optimise()
    is a pure function of the parameter and the note, apply() writes through
    the system mutator.
    """

    kind = ''
    # an undeterminable previous value means "remove our override" on revert
    restores_absence = False

    def __init__(self, inspector, mutator):
        self.inspector = inspector
        self.mutator = mutator

    def parameter(self, name: str, current: Any, **fields) -> Parameter:
        return Parameter(name=name, kind=self.kind, current=NA if current is None else current, **fields)

    def inspect(self, name: str) -> Parameter:
        raise NotImplementedError

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        raise NotImplementedError

    def write(self, name: str, value: Any, revert: bool) -> None:
        raise NotImplementedError

    def previous_value(self, param: Parameter) -> Any:
        """Value to hand to apply(revert=True) to undo the note for this parameter"""
        return param.current

    def apply(self, name: str, value: Any, revert: bool = False) -> None:
        if is_na(value) and not (revert and self.restores_absence):
            logger.info(f"{name}: value undeterminable, nothing to {'revert' if revert else 'apply'}")
            return
        logger.info(f"{'Reverting' if revert else 'Applying'} {name} = '{value}'")
        self.write(name, value, revert)

    def write_entry(self, relpath: str, value: Any, revert: bool) -> None:
        """Write a sysfs/procfs entry, tolerating a vanished entry on revert"""
        if revert and not self.inspector.exists(relpath):
            logger.info(f"{relpath} no longer present, nothing to revert")
            return
        self.mutator.write(relpath, value)


def require_int(name: str, value: Any) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise ApplyError(f"{name}: '{value}' is not a number", parameter=name)
