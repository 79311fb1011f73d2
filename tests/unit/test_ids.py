"""Unit tests for composite message IDs."""

import pytest

from mail_cache_engine.cache.ids import CompositeIdCodec
from mail_cache_engine.exceptions import MalformedIdError, MissingParameterError


@pytest.mark.parametrize(
    ("account_id", "provider_id"),
    [("acc1", "18c2f0a1b"), ("work-account", "x"), ("a.b@c", "123_456")],
)
def test_round_trip(account_id: str, provider_id: str) -> None:
    codec = CompositeIdCodec("user-123456789")

    parts = codec.decompose(codec.compose(account_id, provider_id))

    assert parts.account_id == account_id
    assert parts.provider_id == provider_id
    assert parts.user_prefix == "user-123456789"


def test_full_user_id_by_default() -> None:
    assert CompositeIdCodec("abcdefghijkl").compose("acc", "m1") == "abcdefghijkl#acc#m1"


def test_legacy_prefix_length() -> None:
    assert CompositeIdCodec("abcdefghijkl", prefix_length=8).compose("acc", "m1") == "abcdefgh#acc#m1"


def test_decompose_keeps_extra_separators_in_provider_id() -> None:
    parts = CompositeIdCodec("u").decompose("u#acc#weird#id")

    assert parts.account_id == "acc"
    assert parts.provider_id == "weird#id"


@pytest.mark.parametrize("bad", ["no-separators", "only#two"])
def test_malformed_id(bad: str) -> None:
    with pytest.raises(MalformedIdError):
        CompositeIdCodec("u").decompose(bad)


def test_missing_inputs() -> None:
    codec = CompositeIdCodec("u")

    with pytest.raises(MissingParameterError):
        codec.compose("", "m1")
    with pytest.raises(MissingParameterError):
        codec.compose("acc", "")
    with pytest.raises(MissingParameterError):
        codec.decompose("")
    with pytest.raises(MissingParameterError):
        CompositeIdCodec("")
