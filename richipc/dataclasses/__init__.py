# This file is part of richipc.
#
# richipc is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# richipc is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with richipc.  If not, see <http://www.gnu.org/licenses/>.

"""
Plain data classes sent over IPC.

.. currentmodule:: richipc.dataclasses

.. autosummary::
    :toctree: dataclasses

    presence
"""
