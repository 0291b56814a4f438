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

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Tuple

from note_tuning.operators import NA, Operator, is_na


@dataclass(frozen=True)
class Parameter:
    """
    Immutable snapshot of one tunable parameter.

    Keeps what the system had (current) apart from what a note asked for
    (recommended) and what reconciliation computed (resolved). Every
    transformation returns a new instance.

    Attributes:
        name: Kind-qualified identifier, e.g. 'IO_SCHEDULER_sda' or 'vm.swappiness'
        kind: Parameter kind resolved from the name ('' when unknown)
        current: Value read from the system, or NA
        recommended: Value requested by the note
        resolved: Reconciled value to write; '' means do not apply
        operator: Reconciliation operator declared by the note
        choices: Values the system advertises for this parameter
        facts: System facts gathered while inspecting (e.g. total memory)
        supported: False if the resolved value is not available on this system
        settings: Kind configuration threaded through reconciliation (pagecache)
    """

    name: str
    kind: str = ''
    current: Any = NA
    recommended: Any = None
    resolved: Any = None
    operator: Operator = Operator.EQUAL
    choices: Tuple[str, ...] = ()
    facts: Mapping[str, Any] = field(default_factory=dict)
    supported: bool = True
    settings: Optional[Any] = None

    @property
    def applicable(self) -> bool:
        """True when the resolved value is a real value that may be written"""
        if self.resolved is None or is_na(self.resolved):
            return False
        return str(self.resolved) != ''

    @property
    def changed(self) -> bool:
        return self.applicable and self.resolved != self.current

    def evolve(self, **changes) -> 'Parameter':
        return replace(self, **changes)
