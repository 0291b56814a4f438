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
Pytest configuration for godon note tuning unit tests.

Provides a fake system root below tmp_path so inspect and apply run
against plain files, and a mocked command runner standing in for
systemctl, mount and rpm.
"""

import os
import subprocess
import sys
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from effectuation.host import SystemMutator
from note_tuning.engine import TuningEngine
from reconnaissance.host import SystemInspector


class FakeRoot:
    """Writes files below a temporary directory acting as '/'"""

    def __init__(self, path):
        self.path = str(path)

    def write(self, relpath, content):
        full = os.path.join(self.path, relpath)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, 'w') as handle:
            handle.write(content)
        return full

    def read(self, relpath):
        with open(os.path.join(self.path, relpath)) as handle:
            return handle.read()

    def exists(self, relpath):
        return os.path.exists(os.path.join(self.path, relpath))


def completed(args=None, returncode=0, stdout='', stderr=''):
    return subprocess.CompletedProcess(args or [], returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def system_root(tmp_path):
    return FakeRoot(tmp_path)


@pytest.fixture
def runner():
    """Command runner succeeding with empty output unless configured otherwise"""
    run = MagicMock()
    run.side_effect = lambda args, **kwargs: completed(args)
    return run


@pytest.fixture
def inspector(system_root, runner):
    return SystemInspector(root=system_root.path, run=runner)


@pytest.fixture
def mutator(system_root, runner):
    return SystemMutator(root=system_root.path, run=runner)


@pytest.fixture
def engine(inspector, mutator):
    return TuningEngine(inspector=inspector, mutator=mutator)
