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

from typing import Any, Dict, Tuple

from note_tuning.operators import NA, NA_MARKER


def split_entry(entry: Any) -> Tuple[Any, str]:
    """
    A note entry is either a plain value or a dict with 'value' and an
    optional 'operator'. A missing value counts as undeterminable.
    """
    if isinstance(entry, dict):
        value = entry.get('value')
        operator = entry.get('operator', '=')
    else:
        value, operator = entry, '='
    if value is None or value == NA_MARKER:
        return NA, operator
    return str(value), operator


def note_values(parameters: Dict[str, Any]) -> Dict[str, str]:
    """Plain name -> value view of a note, for kinds reading sibling values"""
    values = {}
    for name, entry in parameters.items():
        value, _ = split_entry(entry)
        if isinstance(value, str):
            values[name] = value
    return values
