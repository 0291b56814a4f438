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
from typing import Any, Dict, List

import wmill

from note_tuning.operators import NA, is_na

logger = logging.getLogger(__name__)

STATE_KEY = 'note_tuning'


class NoteStateStore:
    """
    Keeps the values parameters had before a note was applied.

    Stored in the Windmill script state as
    {'note_tuning': {<note_id>: {<parameter>: <value or null>}}}, an
    undeterminable value is stored as null.
    """

    def _state(self) -> Dict[str, Any]:
        state = wmill.get_state()
        return state if isinstance(state, dict) else {}

    def _notes(self, state: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        return dict(state.get(STATE_KEY) or {})

    def load(self, note_id: str) -> Dict[str, Any]:
        stored = self._notes(self._state()).get(note_id, {})
        return {name: NA if value is None else value for name, value in stored.items()}

    def save(self, note_id: str, previous: Dict[str, Any]) -> None:
        """Record previous values, keeping the ones captured when the note was first applied"""
        state = self._state()
        notes = self._notes(state)
        stored = dict(notes.get(note_id, {}))
        for name, value in previous.items():
            stored.setdefault(name, None if is_na(value) else value)
        notes[note_id] = stored
        state[STATE_KEY] = notes
        wmill.set_state(state)
        logger.debug(f"Stored {len(stored)} previous values for note {note_id}")

    def forget(self, note_id: str) -> None:
        state = self._state()
        notes = self._notes(state)
        if notes.pop(note_id, None) is None:
            return
        state[STATE_KEY] = notes
        wmill.set_state(state)
        logger.debug(f"Dropped previous values of note {note_id}")

    def active_notes(self) -> List[str]:
        return sorted(self._notes(self._state()))
