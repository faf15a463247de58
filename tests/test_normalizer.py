import random

from hypothesis import given, settings, strategies as st

from bridgeconf.normalizer import (
    PIN_PATTERN,
    USERNAME_PATTERN,
    generate_pin,
    generate_username,
    normalize,
    normalize_for_read,
)

json_scalars = st.none() | st.booleans() | st.integers() | st.floats(allow_nan=False) | st.text(max_size=20)
json_values = st.recursive(
    json_scalars,
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=8), children, max_size=4),
    max_leaves=12,
)
bridge_values = st.fixed_dictionaries(
    {},
    optional={
        "port": json_scalars | st.integers(min_value=0, max_value=70000).map(str),
        "username": json_scalars | st.just("aa:bb:cc:dd:ee:ff"),
        "pin": json_scalars | st.just("123-45-678"),
        "name": json_scalars,
    },
)
documents = st.fixed_dictionaries(
    {},
    optional={
        "bridge": bridge_values | json_values,
        "accessories": json_values,
        "platforms": json_values,
        "plugins": json_values,
        "mdns": json_values,
        "disabledPlugins": json_values,
    },
)

def assert_valid(doc: dict) -> None:
    bridge = doc["bridge"]
    assert isinstance(bridge["port"], int) and 1025 <= bridge["port"] <= 65533
    assert USERNAME_PATTERN.match(bridge["username"])
    assert PIN_PATTERN.match(bridge["pin"])
    assert isinstance(bridge["name"], str) and bridge["name"]
    assert isinstance(doc["accessories"], list)
    assert isinstance(doc["platforms"], list)
    if "plugins" in doc:
        assert isinstance(doc["plugins"], list) and doc["plugins"]
    if "mdns" in doc:
        assert isinstance(doc["mdns"], dict)
    if "disabledPlugins" in doc:
        assert isinstance(doc["disabledPlugins"], list)

@settings(max_examples=200, deadline=None)
@given(raw=documents)
def test_normalize_always_produces_valid_document(raw):
    assert_valid(normalize(raw))

@settings(max_examples=200, deadline=None)
@given(raw=documents)
def test_normalize_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once

@given(raw=json_values)
def test_normalize_accepts_any_json_value(raw):
    assert_valid(normalize(raw))

def test_invalid_port_string_scenario():
    doc = normalize({"bridge": {"port": "abc"}})

    assert 51000 <= doc["bridge"]["port"] <= 52000
    assert doc["bridge"]["username"].startswith("0E:")
    assert USERNAME_PATTERN.match(doc["bridge"]["username"])
    assert PIN_PATTERN.match(doc["bridge"]["pin"])
    assert doc["accessories"] == []
    assert doc["platforms"] == []

def test_numeric_port_string_is_parsed():
    assert normalize({"bridge": {"port": "51826"}})["bridge"]["port"] == 51826

def test_port_string_with_too_many_digits_is_replaced():
    port = normalize({"bridge": {"port": "9" * 5000}})["bridge"]["port"]
    assert 51000 <= port <= 52000

def test_out_of_range_port_is_replaced():
    for port in (80, 1024, 65534, 0, True):
        assert 51000 <= normalize({"bridge": {"port": port}})["bridge"]["port"] <= 52000

def test_boundary_ports_are_kept():
    assert normalize({"bridge": {"port": 1025}})["bridge"]["port"] == 1025
    assert normalize({"bridge": {"port": 65533}})["bridge"]["port"] == 65533

def test_invalid_username_and_pin_reuse_previous():
    previous = {"bridge": {"username": "0E:AA:BB:CC:DD:EE", "pin": "111-22-333"}}
    doc = normalize({"bridge": {"username": "not-a-mac", "pin": "1234"}}, previous=previous)

    assert doc["bridge"]["username"] == "0E:AA:BB:CC:DD:EE"
    assert doc["bridge"]["pin"] == "111-22-333"

def test_invalid_username_without_valid_previous_is_generated():
    previous = {"bridge": {"username": "also-bad", "pin": None}}
    doc = normalize({"bridge": {"username": "bad", "pin": "bad"}}, previous=previous)

    assert USERNAME_PATTERN.match(doc["bridge"]["username"])
    assert doc["bridge"]["username"] != "also-bad"
    assert PIN_PATTERN.match(doc["bridge"]["pin"])

def test_missing_username_is_generated_even_with_previous():
    previous = {"bridge": {"username": "0E:AA:BB:CC:DD:EE"}}
    doc = normalize({"bridge": {}}, previous=previous)
    assert USERNAME_PATTERN.match(doc["bridge"]["username"])

def test_lowercase_username_is_valid():
    doc = normalize({"bridge": {"username": "0e:aa:bb:cc:dd:ee"}})
    assert doc["bridge"]["username"] == "0e:aa:bb:cc:dd:ee"

def test_name_derived_from_username():
    doc = normalize({"bridge": {"username": "0E:11:22:33:4F:5A"}})
    assert doc["bridge"]["name"] == "Homebridge 4F5A"

def test_optional_sections_are_dropped_when_invalid():
    doc = normalize({"plugins": [], "mdns": "yes", "disabledPlugins": "homebridge-hue"})
    assert "plugins" not in doc
    assert "mdns" not in doc
    assert "disabledPlugins" not in doc

def test_valid_optional_sections_are_kept():
    doc = normalize({"plugins": ["homebridge-hue"], "mdns": {"interface": "eth0"}, "disabledPlugins": []})
    assert doc["plugins"] == ["homebridge-hue"]
    assert doc["mdns"] == {"interface": "eth0"}
    assert doc["disabledPlugins"] == []

def test_unknown_keys_are_preserved():
    doc = normalize({"ports": {"start": 52100, "end": 52150}})
    assert doc["ports"] == {"start": 52100, "end": 52150}

def test_input_is_not_mutated():
    raw = {"bridge": {"port": "abc"}}
    normalize(raw)
    assert raw == {"bridge": {"port": "abc"}}

def test_read_subset_leaves_identifiers_alone():
    doc = normalize_for_read({"bridge": {"username": "bad", "port": "abc"}, "platforms": {}})
    assert doc["bridge"] == {"username": "bad", "port": "abc"}
    assert doc["accessories"] == []
    assert doc["platforms"] == []

def test_generate_pin_range_and_format():
    rng = random.Random(42)
    for _ in range(500):
        pin = generate_pin(rng)
        assert PIN_PATTERN.match(pin)
        assert 10000000 <= int(pin.replace("-", "")) <= 89999999

def test_generated_usernames_rarely_collide():
    names = {generate_username() for _ in range(200)}
    assert len(names) > 195
    assert all(n.startswith("0E:") and n == n.upper() for n in names)
