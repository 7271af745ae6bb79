import pytest

from richipc.dataclasses.presence import RichPresence


def test_to_dict_only_has_set_fields():
    presence = RichPresence(state="In a match")
    presence.details = "Ranked"
    presence.start = 1500000000
    presence.party_id = "party"
    presence.party_size = [2, 4]
    presence.join_secret = "s3cret"

    assert presence.to_dict() == {
        "state": "In a match",
        "details": "Ranked",
        "timestamps": {"start": 1500000000},
        "party": {"id": "party", "size": [2, 4]},
        "secrets": {"join": "s3cret"},
    }


def test_unset_field():
    presence = RichPresence(state="x")
    presence.start = 1
    presence.state = None
    presence.start = None

    assert presence.to_dict() == {}


def test_field_too_long():
    with pytest.raises(ValueError):
        RichPresence().state = "x" * 129


def test_bad_asset_key():
    with pytest.raises(ValueError):
        RichPresence(assets={"huge_image": "x"})


def test_bad_party_size():
    presence = RichPresence()

    with pytest.raises(ValueError):
        presence.party_size = [5, 4]

    with pytest.raises(ValueError):
        presence.party_size = [1]


def test_buttons():
    presence = RichPresence(buttons=[{"label": "One", "url": "https://example.com/1"}])
    presence.add_button("Two", "https://example.com/2")

    assert [b["label"] for b in presence.buttons] == ["One", "Two"]

    with pytest.raises(ValueError):
        presence.add_button("Three", "https://example.com/3")


def test_equality():
    assert RichPresence(state="a") == RichPresence(state="a")
    assert RichPresence(state="a") != RichPresence(state="b")


def test_constructor_validates():
    with pytest.raises(ValueError):
        RichPresence(details="x" * 200)
