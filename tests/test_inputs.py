import base64
import itertools

import pytest

from fuzzkit.inputs import CommandInput, InputError, InputProvider
from fuzzkit.models import Config, InputProviderConfig

A_WORDS = ["a1", "a2"]
B_WORDS = ["b1", "b2", "b3"]


def _wordlist(tmp_path, name, words):
    path = tmp_path / name
    path.write_text("\n".join(words) + "\n")
    return str(path)


def _config(tmp_path, mode, encoders=""):
    return Config(
        input_mode=mode,
        input_providers=[
            InputProviderConfig("wordlist", "FUZZ", _wordlist(tmp_path, "a.txt", A_WORDS), encoders),
            InputProviderConfig("wordlist", "W2", _wordlist(tmp_path, "b.txt", B_WORDS)),
        ],
    )


def _collect(provider):
    out = []
    while provider.advance():
        values = provider.value()
        out.append((values["FUZZ"].decode(), values["W2"].decode()))
    return out


def test_invalid_mode_raises():
    with pytest.raises(InputError):
        InputProvider(Config(input_mode="nonsense"))


def test_missing_wordlist_raises(tmp_path):
    config = Config(
        input_providers=[InputProviderConfig("wordlist", "FUZZ", str(tmp_path / "nope"))]
    )
    with pytest.raises(InputError):
        InputProvider(config)


def test_keywords(tmp_path):
    provider = InputProvider(_config(tmp_path, "clusterbomb"))
    assert provider.keywords() == ["FUZZ", "W2"]


def test_clusterbomb_covers_all_combinations(tmp_path):
    provider = InputProvider(_config(tmp_path, "clusterbomb"))
    assert provider.total() == len(A_WORDS) * len(B_WORDS)
    combos = _collect(provider)
    assert len(combos) == provider.total()
    assert set(combos) == set(itertools.product(A_WORDS, B_WORDS))


def test_clusterbomb_first_keyword_varies_fastest(tmp_path):
    provider = InputProvider(_config(tmp_path, "clusterbomb"))
    combos = _collect(provider)
    assert combos[:3] == [("a1", "b1"), ("a2", "b1"), ("a1", "b2")]


def test_pitchfork_lockstep_and_wraps(tmp_path):
    provider = InputProvider(_config(tmp_path, "pitchfork"))
    assert provider.total() == len(B_WORDS)
    assert _collect(provider) == [("a1", "b1"), ("a2", "b2"), ("a1", "b3")]


def test_reset_restarts_iteration(tmp_path):
    provider = InputProvider(_config(tmp_path, "clusterbomb"))
    first = _collect(provider)
    provider.reset()
    assert provider.position == 0
    assert _collect(provider) == first


def test_set_position_clusterbomb(tmp_path):
    provider = InputProvider(_config(tmp_path, "clusterbomb"))
    combos = _collect(provider)
    provider.set_position(3)
    assert provider.advance()
    values = provider.value()
    assert (values["FUZZ"].decode(), values["W2"].decode()) == combos[2]


def test_activate_keywords_changes_total(tmp_path):
    provider = InputProvider(_config(tmp_path, "clusterbomb"))
    provider.activate_keywords(["W2"])
    assert provider.total() == len(B_WORDS)
    provider.activate_keywords(["FUZZ", "W2"])
    assert provider.total() == len(A_WORDS) * len(B_WORDS)


def test_encoder_applied(tmp_path):
    provider = InputProvider(_config(tmp_path, "pitchfork", encoders="b64encode"))
    provider.advance()
    values = provider.value()
    assert values["FUZZ"] == base64.b64encode(b"a1")
    assert values["W2"] == b"b1"


def test_encoder_chain_round_trip(tmp_path):
    provider = InputProvider(_config(tmp_path, "pitchfork", encoders="b64encode b64decode"))
    provider.advance()
    assert provider.value()["FUZZ"] == b"a1"


def test_unknown_encoder_raises(tmp_path):
    with pytest.raises(InputError):
        InputProvider(_config(tmp_path, "pitchfork", encoders="nosuchencoder"))


@pytest.mark.parametrize("pos", [0, 7])
def test_command_input_sees_position(pos):
    command = CommandInput("FUZZ", 'printf %s "$FFUF_NUM"', Config(input_num=10))
    command.position = pos
    assert command.value() == str(pos).encode()


def test_command_input_failure_returns_empty():
    command = CommandInput("FUZZ", "exit 3", Config())
    assert command.value() == b""


def test_command_input_limits():
    command = CommandInput("FUZZ", "true", Config(input_num=2))
    assert command.total() == 2
    assert command.has_next()
    command.increment_position()
    command.increment_position()
    assert not command.has_next()
    command.reset_position()
    assert command.position == 0


def test_command_provider_in_main_provider():
    config = Config(
        input_mode="clusterbomb",
        input_num=3,
        input_providers=[InputProviderConfig("command", "FUZZ", 'printf %s "$FFUF_NUM"')],
    )
    provider = InputProvider(config)
    seen = []
    while provider.advance():
        seen.append(provider.value()["FUZZ"])
    assert seen == [b"0", b"1", b"2"]