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
Wrappers for Rich Presence activities.

.. currentmodule:: richipc.dataclasses.presence
"""
from typing import Dict, List, Optional


def _make_property(field: str, doc: str = None, max_size: int = None) -> property:
    def _getter(self):
        return self._rich_fields.get(field)

    def _setter(self, value: str):
        if value is None:
            self._rich_fields.pop(field, None)
            return

        if max_size is not None and len(value) > max_size:
            raise ValueError("Field '{}' cannot be longer than {} characters"
                             .format(field, max_size))

        self._rich_fields[field] = value

    prop = property(_getter, _setter, doc=doc)
    return prop


def _make_sub_property(parent: str, field: str, doc: str = None, max_size: int = None) -> property:
    def _getter(self):
        return self._rich_fields.get(parent, {}).get(field)

    def _setter(self, value):
        if value is None:
            self._rich_fields.get(parent, {}).pop(field, None)
            if not self._rich_fields.get(parent, True):
                del self._rich_fields[parent]
            return

        if max_size is not None and len(value) > max_size:
            raise ValueError("Field '{}.{}' cannot be longer than {} characters"
                             .format(parent, field, max_size))

        self._rich_fields.setdefault(parent, {})[field] = value

    prop = property(_getter, _setter, doc=doc)
    return prop


ASSET_KEYS = ('large_image', 'large_text', 'small_image', 'small_text')


class RichPresence(object):
    """
    Represents a Rich Presence. This class can be created safely for usage with
    :class:`.IPCClient`.

    .. code-block:: python3

        presence = RichPresence(state="In a match", details="Ranked 2v2")
        presence.start = int(time.time())
        presence.add_button("Website", "https://example.com")

    """
    #: The maximum number of buttons Discord will show.
    MAX_BUTTONS = 2

    def __init__(self, **fields):
        """
        :param fields: The rich presence fields, as Discord names them.
        """
        self._rich_fields = {}  # type: Dict[str, object]

        for key, value in fields.items():
            if key == "assets":
                self.assets = value
            elif key == "buttons":
                for button in value:
                    self.add_button(button["label"], button["url"])
            elif isinstance(getattr(type(self), key, None), property):
                setattr(self, key, value)
            else:
                self._rich_fields[key] = value

    def __repr__(self) -> str:
        return "<RichPresence {!r}>".format(self._rich_fields)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RichPresence):
            return NotImplemented

        return self._rich_fields == other._rich_fields

    state = _make_property("state", "The state for this presence.", 128)
    details = _make_property("details", "The details for this presence.", 128)
    instance = _make_property("instance", "If this presence is for a specific match instance.")

    start = _make_sub_property("timestamps", "start", "The unix time this activity started.")
    end = _make_sub_property("timestamps", "end", "The unix time this activity will end.")

    party_id = _make_sub_property("party", "id", "The party ID for this rich presence.", 128)

    join_secret = _make_sub_property("secrets", "join", "The secret for joining a party.", 128)
    spectate_secret = _make_sub_property("secrets", "spectate",
                                         "The secret for spectating a game.", 128)
    match_secret = _make_sub_property("secrets", "match",
                                      "The secret for a specific match instance.", 128)

    @property
    def assets(self) -> dict:
        """
        The assets for this rich presence. Returns a dict of
        (large_image, large_text, small_image, small_text).
        """
        return self._rich_fields.get("assets", {})

    @assets.setter
    def assets(self, value: dict):
        for key in value.keys():
            if key not in ASSET_KEYS:
                raise ValueError("Bad asset key: {}".format(key))

        self._rich_fields["assets"] = dict(value)

    @property
    def party_size(self) -> Optional[List[int]]:
        """
        The size of the party for this rich presence. An array of [size, max].
        """
        return self._rich_fields.get("party", {}).get("size")

    @party_size.setter
    def party_size(self, size: List[int]):
        size = list(size)
        if len(size) != 2:
            raise ValueError("Party size must be [size, max]")

        if size[0] > size[1]:
            raise ValueError("Party size {} is larger than the maximum {}".format(*size))

        self._rich_fields.setdefault("party", {})["size"] = size

    @property
    def buttons(self) -> List[Dict[str, str]]:
        """
        The buttons shown on this rich presence, as dicts of (label, url).
        """
        return list(self._rich_fields.get("buttons", []))

    def add_button(self, label: str, url: str) -> 'RichPresence':
        """
        Adds a button to this rich presence.

        :param label: The text on the button. 32 characters max.
        :param url: The URL the button opens. 512 characters max.
        :return: This presence.
        """
        buttons = self._rich_fields.setdefault("buttons", [])
        if len(buttons) >= self.MAX_BUTTONS:
            raise ValueError("A rich presence cannot have more than {} buttons"
                             .format(self.MAX_BUTTONS))

        if len(label) > 32:
            raise ValueError("Button label cannot be longer than 32 characters")

        if len(url) > 512:
            raise ValueError("Button URL cannot be longer than 512 characters")

        buttons.append({"label": label, "url": url})
        return self

    def to_dict(self) -> dict:
        """
        :return: The dict representation of this object.
        """
        return {key: value for key, value in self._rich_fields.items()
                if value not in (None, {}, [])}
