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


class TuningError(Exception):
    """Base class for failures while tuning a single parameter"""

    def __init__(self, message: str, parameter: str = None):
        super().__init__(message)
        self.message = message
        self.parameter = parameter


class InspectError(TuningError):
    """Reading the live system value failed for I/O reasons"""


class ApplyError(TuningError):
    """Writing a value to the system failed"""


class UnknownParameterError(TuningError):
    """No parameter kind handles the given name"""
