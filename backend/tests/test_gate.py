import random
import re

import pytest

from verbdict.core.settings import GuardConfig
from verbdict.security.attempts import AttemptLedger
from verbdict.security.challenge import digest
from verbdict.security.errors import BadRequest, RateLimited, WrongAnswer, WrongCredential
from verbdict.security.gate import VerificationGate

CONFIG = GuardConfig(max_attempts=5, cooldown_ms=600_000, secret="gate-secret")
IP = "1.2.3.4"
TOKEN = digest(12, CONFIG.secret)


class SpyLedger(AttemptLedger):
    def __init__(self, db, config):
        super().__init__(db, config)
        self.calls = []

    def record_outcome(self, identity, success):
        self.calls.append((identity, success))
        super().record_outcome(identity, success)


def _gate(db, config=CONFIG, password="pw"):
    ledger = SpyLedger(db, config)
    return VerificationGate(ledger, config, admin_password=password, rng=random.Random(1)), ledger


def _fail(gate, times):
    for _ in range(times):
        with pytest.raises(WrongAnswer):
            gate.verify(IP, 13, TOKEN)


def test_issue_challenge_token_matches_answer(db, clock):
    gate, _ = _gate(db)
    challenge = gate.issue_challenge(IP)
    assert challenge.token == digest(challenge.question.answer, CONFIG.secret)
    gate.verify(IP, challenge.question.answer, challenge.token)


def test_correct_answer_is_granted_and_clears_ledger(db, clock):
    gate, ledger = _gate(db)
    _fail(gate, 2)
    gate.verify(IP, "12", TOKEN)
    assert ledger.get(IP) is None
    assert ledger.calls[-1] == (IP, True)


def test_five_failures_ban_challenge_requests(db, clock):
    gate, _ = _gate(db)
    _fail(gate, 5)

    with pytest.raises(RateLimited) as excinfo:
        gate.issue_challenge(IP)
    message = excinfo.value.message
    minutes = int(re.search(r"in (\d+) minute", message).group(1))
    assert 1 <= minutes <= 10
    assert excinfo.value.retry_after == 600


def test_banned_identity_is_refused_even_with_correct_answer(db, clock):
    gate, ledger = _gate(db)
    _fail(gate, 5)
    calls_before = list(ledger.calls)

    with pytest.raises(RateLimited):
        gate.verify(IP, 12, TOKEN)
    assert ledger.calls == calls_before
    assert ledger.get(IP).fail_count == 5


def test_success_before_threshold_resets_count(db, clock):
    gate, ledger = _gate(db)
    _fail(gate, 4)
    gate.verify(IP, 12, TOKEN)
    assert ledger.get(IP) is None

    _fail(gate, 4)
    assert not gate.check_ban(IP).banned


def test_ban_lifts_after_cooldown_and_count_restarts(db, clock):
    gate, ledger = _gate(db)
    _fail(gate, 5)
    assert gate.check_ban(IP).banned

    clock.advance(600_001)
    assert not gate.check_ban(IP).banned
    gate.issue_challenge(IP)

    _fail(gate, 1)
    assert ledger.get(IP).fail_count == 1


def test_permanent_ban_with_negative_cooldown(db, clock):
    config = GuardConfig(max_attempts=5, cooldown_ms=-1, secret=CONFIG.secret)
    gate, _ = _gate(db, config)
    _fail(gate, 5)

    clock.advance(365 * 24 * 3_600_000)
    with pytest.raises(RateLimited) as excinfo:
        gate.issue_challenge(IP)
    assert "permanently" in excinfo.value.message
    assert excinfo.value.retry_after is None


def test_privileged_bypass_never_touches_ledger(db, clock):
    gate, ledger = _gate(db)
    gate.verify(IP, None, None, privileged=True)
    assert ledger.calls == []
    assert ledger.get(IP) is None

    _fail(gate, 5)
    calls_before = list(ledger.calls)
    gate.verify(IP, None, None, privileged=True)
    assert ledger.calls == calls_before


@pytest.mark.parametrize("answer,token", [(None, TOKEN), ("", TOKEN), ("  ", TOKEN), (12, None), (12, "")])
def test_missing_fields_are_not_penalised(db, clock, answer, token):
    gate, ledger = _gate(db)
    _fail(gate, 2)
    with pytest.raises(BadRequest):
        gate.verify(IP, answer, token)
    assert ledger.get(IP).fail_count == 2


def test_login_with_wrong_password_consumes_attempt(db, clock):
    gate, ledger = _gate(db)
    with pytest.raises(WrongCredential):
        gate.verify_login(IP, "nope", 12, TOKEN)
    assert ledger.get(IP).fail_count == 1


def test_login_with_wrong_captcha_is_wrong_answer(db, clock):
    gate, ledger = _gate(db)
    with pytest.raises(WrongAnswer):
        gate.verify_login(IP, "pw", 11, TOKEN)
    assert ledger.get(IP).fail_count == 1


def test_login_success_clears_ledger(db, clock):
    gate, ledger = _gate(db)
    _fail(gate, 3)
    gate.verify_login(IP, "pw", 12, TOKEN)
    assert ledger.get(IP) is None


def test_login_missing_password_is_bad_request(db, clock):
    gate, ledger = _gate(db)
    with pytest.raises(BadRequest):
        gate.verify_login(IP, None, 12, TOKEN)
    assert ledger.calls == []


def test_login_without_configured_password_always_fails(db, clock):
    gate, _ = _gate(db, password=None)
    with pytest.raises(WrongCredential):
        gate.verify_login(IP, "", 12, TOKEN)


def test_login_is_refused_while_banned(db, clock):
    gate, _ = _gate(db)
    _fail(gate, 5)
    with pytest.raises(RateLimited):
        gate.verify_login(IP, "pw", 12, TOKEN)
