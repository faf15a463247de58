"""
Repair engine for the bridge configuration document.

The normalizer never rejects a document. Each rule below fixes one field in
place on a private deep copy, and the rules run in the order listed in
``WRITE_RULES`` because later rules read what earlier rules repaired (the
bridge name is derived from the final username, for example).
"""
import copy
import random
import re
from typing import Any, Callable, Dict, List, Optional

USERNAME_PATTERN = re.compile(r"^(?:[0-9A-F]{2}:){5}[0-9A-F]{2}$", re.IGNORECASE)
PIN_PATTERN = re.compile(r"^\d{3}-\d{2}-\d{3}$")
LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")

PORT_MIN = 1025
PORT_MAX = 65533
RANDOM_PORT_MIN = 51000
RANDOM_PORT_MAX = 52000

HEX_DIGITS = "0123456789ABCDEF"

Document = Dict[str, Any]
Rule = Callable[[Document, Document], None]

_random = random.Random()


def generate_username(rng: Optional[random.Random] = None) -> str:
    """Return a locally administered MAC-style id, e.g. 0E:3A:91:0C:FF:27."""
    rng = rng or _random
    octets = ["0E"]
    for _ in range(5):
        octets.append(rng.choice(HEX_DIGITS) + rng.choice(HEX_DIGITS))
    return ":".join(octets)

def generate_pin(rng: Optional[random.Random] = None) -> str:
    """Return a setup code in ###-##-### form."""
    rng = rng or _random
    code = f"{rng.randint(10000000, 89999999):08d}"
    return f"{code[:3]}-{code[3:5]}-{code[5:]}"

def generate_port(rng: Optional[random.Random] = None) -> int:
    rng = rng or _random
    return rng.randint(RANDOM_PORT_MIN, RANDOM_PORT_MAX)

def is_valid_username(value: Any) -> bool:
    return isinstance(value, str) and USERNAME_PATTERN.match(value) is not None

def is_valid_pin(value: Any) -> bool:
    return isinstance(value, str) and PIN_PATTERN.match(value) is not None

def is_valid_port(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and PORT_MIN <= value <= PORT_MAX

def _previous_bridge(previous: Document) -> Dict[str, Any]:
    bridge = previous.get("bridge") if isinstance(previous, dict) else None
    return bridge if isinstance(bridge, dict) else {}

# -- rules --------------------------------------------------------------------

def ensure_bridge_object(config: Document, previous: Document) -> None:
    if not isinstance(config.get("bridge"), dict):
        config["bridge"] = {}

def parse_port_string(config: Document, previous: Document) -> None:
    port = config["bridge"].get("port")
    if isinstance(port, str):
        match = LEADING_INT_PATTERN.match(port)
        try:
            config["bridge"]["port"] = int(match.group(1)) if match else None
        except ValueError:
            # too many digits for int(); out of range either way
            config["bridge"]["port"] = None

def ensure_valid_port(config: Document, previous: Document) -> None:
    if not is_valid_port(config["bridge"].get("port")):
        config["bridge"]["port"] = generate_port()

def ensure_username(config: Document, previous: Document) -> None:
    bridge = config["bridge"]
    if not bridge.get("username"):
        bridge["username"] = generate_username()
        return
    if not is_valid_username(bridge["username"]):
        last_known = _previous_bridge(previous).get("username")
        bridge["username"] = last_known if is_valid_username(last_known) else generate_username()

def ensure_pin(config: Document, previous: Document) -> None:
    bridge = config["bridge"]
    if not bridge.get("pin"):
        bridge["pin"] = generate_pin()
        return
    if not is_valid_pin(bridge["pin"]):
        last_known = _previous_bridge(previous).get("pin")
        bridge["pin"] = last_known if is_valid_pin(last_known) else generate_pin()

def ensure_name(config: Document, previous: Document) -> None:
    bridge = config["bridge"]
    name = bridge.get("name")
    if not name or not isinstance(name, str):
        suffix = bridge["username"][-5:].replace(":", "")
        bridge["name"] = f"Homebridge {suffix}"

def ensure_block_arrays(config: Document, previous: Document) -> None:
    for key in ("accessories", "platforms"):
        if not isinstance(config.get(key), list):
            config[key] = []

def drop_empty_plugins(config: Document, previous: Document) -> None:
    if "plugins" in config and not (isinstance(config["plugins"], list) and config["plugins"]):
        del config["plugins"]

def drop_invalid_mdns(config: Document, previous: Document) -> None:
    if "mdns" in config and not isinstance(config["mdns"], dict):
        del config["mdns"]

def drop_invalid_disabled_plugins(config: Document, previous: Document) -> None:
    if "disabledPlugins" in config and not isinstance(config["disabledPlugins"], list):
        del config["disabledPlugins"]

WRITE_RULES: List[Rule] = [
    ensure_bridge_object,
    parse_port_string,
    ensure_valid_port,
    ensure_username,
    ensure_pin,
    ensure_name,
    ensure_block_arrays,
    drop_empty_plugins,
    drop_invalid_mdns,
    drop_invalid_disabled_plugins,
]

READ_RULES: List[Rule] = [
    ensure_bridge_object,
    ensure_block_arrays,
]

def _apply(rules: List[Rule], raw: Any, previous: Optional[Document]) -> Document:
    config = copy.deepcopy(raw) if isinstance(raw, dict) else {}
    for rule in rules:
        rule(config, previous or {})
    return config

def normalize(raw: Any, previous: Optional[Document] = None) -> Document:
    """
    Full write-path repair. ``previous`` is the currently persisted document,
    consulted so an invalid username or pin falls back to the last good one.
    """
    return _apply(WRITE_RULES, raw, previous)

def normalize_for_read(raw: Any) -> Document:
    """Structural subset for reads: never touches bridge identifiers."""
    return _apply(READ_RULES, raw, None)
