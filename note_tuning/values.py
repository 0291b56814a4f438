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

from typing import Union

Number = Union[int, float]


def max_value(*values: Number) -> Number:
    """Return the largest value, 0 if there is none. Never below 0."""
    result = 0
    for value in values:
        if result < value:
            result = value
    return result


def min_value(*values: Number) -> Number:
    """Return the smallest value, 0 if there is none."""
    if not values:
        return 0
    result = values[0]
    for value in values[1:]:
        if result > value:
            result = value
    return result
