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

"""
Per-instance values as exposed for block devices and CPU cores.

The textual form is an ordered list of 'key:value' tokens separated by
blanks, e.g. 'cpu0:15 cpu1:6' or 'all:performance'.
"""

from typing import Dict, List, Tuple

ALL = 'all'


def parse_instances(text: str) -> List[Tuple[str, str]]:
    entries = []
    for token in (text or '').split():
        key, _, value = token.partition(':')
        entries.append((key, value))
    return entries


def format_instances(entries: List[Tuple[str, str]]) -> str:
    return ' '.join(f"{key}:{value}" for key, value in entries)


def fill_instances(text: str, value: str) -> str:
    """Overwrite the value of every entry, keeping keys and their order"""
    return format_instances([(key, value) for key, _ in parse_instances(text)])


def collapse_instances(values: Dict[str, str]) -> str:
    """Serialize per-instance values, folding identical ones into 'all:<value>'"""
    if not values:
        return ''
    distinct = set(values.values())
    if len(distinct) == 1:
        return f"{ALL}:{distinct.pop()}"
    return format_instances(list(values.items()))
