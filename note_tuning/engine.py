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
from typing import Any, Dict, Mapping, Optional, Union

from effectuation.host import SystemMutator
from note_tuning.block import BlockDeviceOptimizer
from note_tuning.bootloader import BootParameterOptimizer
from note_tuning.cpu import CPUOptimizer
from note_tuning.limits import LimitsOptimizer
from note_tuning.login import LoginOptimizer
from note_tuning.memory import MemoryOptimizer
from note_tuning.operators import Operator, is_na
from note_tuning.optimizer import Optimizer
from note_tuning.package import PackageOptimizer
from note_tuning.pagecache import PagecacheOptimizer, PagecacheSettings
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import parameter_kind
from note_tuning.service import ServiceOptimizer
from note_tuning.sysctl import SysctlOptimizer
from note_tuning.vm import VMOptimizer
from reconnaissance.host import SystemInspector

logger = logging.getLogger(__name__)

OPTIMIZERS = (
    SysctlOptimizer,
    BlockDeviceOptimizer,
    VMOptimizer,
    CPUOptimizer,
    MemoryOptimizer,
    PagecacheOptimizer,
    ServiceOptimizer,
    LimitsOptimizer,
    LoginOptimizer,
    PackageOptimizer,
    BootParameterOptimizer,
)


class TuningEngine:
    """
    Drives note parameters through Inspect -> Optimise -> Apply.

    The kind of a parameter is resolved from its name via the parameter
    registry. Names no kind handles are not an error: they inspect as NA,
    their recommendation passes through unchanged and apply is skipped.
    """

    def __init__(self, inspector: Optional[SystemInspector] = None, mutator: Optional[SystemMutator] = None):
        self.inspector = inspector or SystemInspector()
        self.mutator = mutator or SystemMutator()
        self.optimizers: Dict[str, Optimizer] = {
            optimizer.kind: optimizer(self.inspector, self.mutator) for optimizer in OPTIMIZERS
        }

    def optimizer_for(self, name: str) -> Optional[Optimizer]:
        kind = parameter_kind(name)
        return self.optimizers.get(kind) if kind else None

    def inspect(self, name: str) -> Parameter:
        """Read the live value of a parameter. Never changes the system."""
        optimizer = self.optimizer_for(name)
        if optimizer is None:
            logger.warning(f"No parameter kind handles '{name}', reporting it as undeterminable")
            return Parameter(name=name)

        param = optimizer.inspect(name)
        logger.debug(f"Inspected {name} ({param.kind}): '{param.current}'")
        return param

    def optimise(self, param: Parameter, recommended: Any,
                 operator: Union[Operator, str] = Operator.EQUAL,
                 note: Optional[Mapping[str, str]] = None,
                 settings: Optional[PagecacheSettings] = None) -> Parameter:
        """
        Reconcile the inspected value with a recommendation.

        Args:
            param: Result of inspect()
            recommended: Value recommended by the note, NA keeps the current value
            operator: Reconciliation operator declared by the note
            note: All values of the note, for kinds that depend on sibling values
            settings: Pagecache settings; the updated copy is returned on the result

        Returns:
            New Parameter carrying the resolved value
        """
        if not isinstance(operator, Operator):
            operator = Operator.parse(operator)
        param = param.evolve(recommended=recommended, operator=operator)
        if settings is not None:
            param = param.evolve(settings=settings)

        if is_na(recommended):
            return param.evolve(resolved=param.current)

        optimizer = self.optimizer_for(param.name)
        if optimizer is None:
            return param.evolve(resolved=recommended)

        result = optimizer.optimise(param, note or {})
        logger.debug(f"Optimised {param.name}: '{param.current}' -> '{result.resolved}'")
        return result

    def apply(self, name: str, value: Any, revert: bool = False) -> None:
        """
        Write a value to the system.

        With revert set, value is the one captured before the note was
        applied and gets restored as is.
        """
        optimizer = self.optimizer_for(name)
        if optimizer is None:
            logger.warning(f"No parameter kind handles '{name}', nothing to apply")
            return
        optimizer.apply(name, value, revert=revert)

    def previous_value(self, param: Parameter) -> Any:
        """Value to record before applying param, restored by apply(..., revert=True)"""
        optimizer = self.optimizer_for(param.name)
        return optimizer.previous_value(param) if optimizer else param.current

    def tune(self, name: str, recommended: Any,
             operator: Union[Operator, str] = Operator.EQUAL,
             note: Optional[Mapping[str, str]] = None,
             settings: Optional[PagecacheSettings] = None,
             write: bool = False) -> Parameter:
        param = self.optimise(self.inspect(name), recommended, operator=operator, note=note, settings=settings)
        if write and param.applicable and param.supported:
            self.apply(name, param.resolved)
        return param
