"""
test/test_registry.py — Tests for susid_core.registry

Run:  pytest test/test_registry.py -v
  or: python test/test_registry.py
"""

import json
import os
import sys
import tempfile

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pydantic import ValidationError

from susid_core import (
    ConfigError,
    MAX_SECRETS,
    MAX_TYPES,
    Registry,
    load_registry,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SECRETS = {0: "alpha", 1: "beta", 2: "gamma"}
TYPES = {10: "USER", 20: "ORDER"}


def _expect_config_error(**kwargs) -> ConfigError:
    try:
        Registry(**kwargs)
        assert False, f"Registry({kwargs!r}) should have failed"
    except ConfigError as exc:
        return exc


def _write_json(data) -> str:
    with tempfile.NamedTemporaryFile(
        "w", suffix=".json", delete=False, encoding="utf-8"
    ) as f:
        json.dump(data, f)
        return f.name


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def test_registry_basic():
    r = Registry(secrets=SECRETS, types=TYPES)
    assert r.signature_bytes == 2
    assert r.random_bytes == 6
    assert r.digest == "sha256"
    assert r.secret(0) == b"alpha"
    assert r.secret_ids == (0, 1, 2)
    print("  PASS: test_registry_basic")


def test_secret_count_boundary():
    """256 secrets is the maximum; 257 is rejected."""
    Registry(secrets={i: "s" for i in range(MAX_SECRETS)}, types=TYPES)
    _expect_config_error(
        secrets={i: "s" for i in range(MAX_SECRETS + 1)}, types=TYPES,
    )
    print("  PASS: test_secret_count_boundary")


def test_type_count_boundary():
    """255 types is the maximum; 256 is rejected."""
    Registry(secrets=SECRETS, types={i: "t" for i in range(MAX_TYPES)})
    _expect_config_error(
        secrets=SECRETS, types={i: "t" for i in range(MAX_TYPES + 1)},
    )
    print("  PASS: test_type_count_boundary")


def test_secret_key_range():
    _expect_config_error(secrets={**SECRETS, -1: "neg"}, types=TYPES)
    _expect_config_error(secrets={**SECRETS, 256: "overflow"}, types=TYPES)
    Registry(secrets={255: "last"}, types=TYPES)
    print("  PASS: test_secret_key_range")


def test_type_key_range():
    """255 is the reserved untyped id and never a valid registry key."""
    _expect_config_error(secrets=SECRETS, types={**TYPES, -1: "neg"})
    _expect_config_error(secrets=SECRETS, types={**TYPES, 255: "reserved"})
    _expect_config_error(secrets=SECRETS, types={**TYPES, 256: "overflow"})
    Registry(secrets=SECRETS, types={254: "last"})
    print("  PASS: test_type_key_range")


def test_signature_bytes_range():
    _expect_config_error(secrets=SECRETS, types=TYPES, signature_bytes=0)
    _expect_config_error(secrets=SECRETS, types=TYPES, signature_bytes=5)
    for n in (1, 2, 3, 4):
        r = Registry(secrets=SECRETS, types=TYPES, signature_bytes=n)
        assert r.random_bytes == 8 - n
    print("  PASS: test_signature_bytes_range")


def test_non_integer_key_rejected():
    _expect_config_error(secrets={"abc": "x"}, types=TYPES)
    print("  PASS: test_non_integer_key_rejected")


def test_keys_must_be_real_ints():
    """Numeric strings, floats and bools are not ids."""
    for key in ("1", 1.0, True):
        _expect_config_error(secrets={key: "x"}, types=TYPES)
        _expect_config_error(secrets=SECRETS, types={key: "X"})
    print("  PASS: test_keys_must_be_real_ints")


def test_signature_bytes_must_be_int():
    for value in (True, "2", 2.0):
        _expect_config_error(
            secrets=SECRETS, types=TYPES, signature_bytes=value,
        )
    print("  PASS: test_signature_bytes_must_be_int")


def test_unknown_digest_rejected():
    exc = _expect_config_error(secrets=SECRETS, types=TYPES, digest="md5")
    assert "md5" in str(exc)
    assert isinstance(exc.__cause__, ValidationError)
    print("  PASS: test_unknown_digest_rejected")


def test_config_error_is_value_error():
    exc = _expect_config_error(secrets=SECRETS, types=TYPES, signature_bytes=9)
    assert isinstance(exc, ValueError)
    print("  PASS: test_config_error_is_value_error")


def test_empty_secrets_allowed():
    r = Registry(secrets={}, types={})
    assert r.secret_ids == ()
    assert r.has_secret(0) is False
    print("  PASS: test_empty_secrets_allowed")


# ---------------------------------------------------------------------------
# Immutability
# ---------------------------------------------------------------------------

def test_copy_on_construct():
    """Mutating the caller's dicts afterwards does not leak in."""
    secrets = {0: "alpha"}
    types = {10: "USER"}
    r = Registry(secrets=secrets, types=types)
    secrets[1] = "beta"
    secrets[0] = "changed"
    types[20] = "ORDER"
    assert r.secret_ids == (0,)
    assert r.secret(0) == b"alpha"
    assert r.is_registered_type(20) is False
    print("  PASS: test_copy_on_construct")


def test_frozen():
    r = Registry(secrets=SECRETS, types=TYPES)
    try:
        r.signature_bytes = 4
        assert False, "Registry should be frozen"
    except ValidationError:
        pass
    print("  PASS: test_frozen")


def test_tables_are_read_only():
    """Item assignment on the secret and type tables is refused."""
    r = Registry(secrets=SECRETS, types=TYPES)
    try:
        r.secrets[9] = b"x"
        assert False, "secrets table should be read-only"
    except TypeError:
        pass
    try:
        r.types[42] = "INJECTED"
        assert False, "types table should be read-only"
    except TypeError:
        pass
    try:
        del r.secrets[0]
        assert False, "secrets table should be read-only"
    except TypeError:
        pass
    # Derived lookups still agree with each other
    assert r.has_secret(9) is False
    assert r.secret_ids == (0, 1, 2)
    assert r.is_registered_type(42) is False
    assert r.type_description(42) == "Unknown"
    print("  PASS: test_tables_are_read_only")


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def test_type_description():
    r = Registry(secrets=SECRETS, types=TYPES)
    assert r.type_description(10) == "USER"
    assert r.type_description(255) == "Untyped"
    assert r.type_description(99) == "Unknown"
    assert r.type_description(0) == "Unknown"
    print("  PASS: test_type_description")


def test_secret_lookup():
    r = Registry(secrets={7: b"\x00\xffraw", 3: "text"}, types={})
    assert r.secret(7) == b"\x00\xffraw"
    assert r.secret(3) == b"text"
    assert r.secret_ids == (3, 7)
    assert r.has_secret(7) and not r.has_secret(8)
    try:
        r.secret(8)
        assert False, "Missing secret should raise KeyError"
    except KeyError:
        pass
    print("  PASS: test_secret_lookup")


def test_utf8_secret_encoding():
    r = Registry(secrets={0: "clé"}, types={})
    assert r.secret(0) == "clé".encode("utf-8")
    print("  PASS: test_utf8_secret_encoding")


# ---------------------------------------------------------------------------
# JSON loading
# ---------------------------------------------------------------------------

def test_load_registry():
    path = _write_json({
        "secrets": {"0": "alpha", "1": "beta"},
        "types": {"10": "USER"},
        "signature_bytes": 3,
    })
    try:
        r = load_registry(path)
        assert r.secret_ids == (0, 1)
        assert r.type_description(10) == "USER"
        assert r.signature_bytes == 3

        r2 = load_registry(path, signature_bytes=1)
        assert r2.signature_bytes == 1
    finally:
        os.unlink(path)
    print("  PASS: test_load_registry")


def test_load_registry_invalid_content():
    path = _write_json({"secrets": {"300": "x"}, "types": {}})
    try:
        try:
            load_registry(path)
            assert False, "Out-of-range key in file should fail"
        except ConfigError:
            pass
    finally:
        os.unlink(path)

    path = _write_json(["not", "an", "object"])
    try:
        try:
            load_registry(path)
            assert False, "Non-object JSON should fail"
        except ConfigError:
            pass
    finally:
        os.unlink(path)

    path = _write_json({"secrets": {"x": "a"}, "types": {}})
    try:
        try:
            load_registry(path)
            assert False, "Non-numeric key in file should fail"
        except ConfigError as exc:
            assert "'x'" in str(exc)
    finally:
        os.unlink(path)

    path = _write_json({"secrets": {"0": "a"}, "types": {"1.5": "HALF"}})
    try:
        try:
            load_registry(path)
            assert False, "Fractional key in file should fail"
        except ConfigError:
            pass
    finally:
        os.unlink(path)

    path = _write_json(
        {"secrets": {"0": "a"}, "types": {}, "signature_bytes": "2"}
    )
    try:
        try:
            load_registry(path)
            assert False, "String signature_bytes in file should fail"
        except ConfigError:
            pass
    finally:
        os.unlink(path)
    print("  PASS: test_load_registry_invalid_content")


def test_load_registry_missing_file():
    try:
        load_registry(os.path.join(tempfile.gettempdir(), "no-such-susid.json"))
        assert False, "Missing file should raise"
    except FileNotFoundError:
        pass
    print("  PASS: test_load_registry_missing_file")


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def run_all():
    print("=" * 60)
    print("SusId Registry Tests")
    print("=" * 60)

    print("\n--- Construction ---")
    test_registry_basic()
    test_secret_count_boundary()
    test_type_count_boundary()
    test_secret_key_range()
    test_type_key_range()
    test_signature_bytes_range()
    test_non_integer_key_rejected()
    test_keys_must_be_real_ints()
    test_signature_bytes_must_be_int()
    test_unknown_digest_rejected()
    test_config_error_is_value_error()
    test_empty_secrets_allowed()

    print("\n--- Immutability ---")
    test_copy_on_construct()
    test_frozen()
    test_tables_are_read_only()

    print("\n--- Lookups ---")
    test_type_description()
    test_secret_lookup()
    test_utf8_secret_encoding()

    print("\n--- JSON loading ---")
    test_load_registry()
    test_load_registry_invalid_content()
    test_load_registry_missing_file()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    run_all()
