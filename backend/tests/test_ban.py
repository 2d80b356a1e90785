from verbdict.core.settings import GuardConfig
from verbdict.db_models import AttemptRecord
from verbdict.security.ban import PERMANENT_MESSAGE, evaluate

CONFIG = GuardConfig(max_attempts=5, cooldown_ms=600_000, secret="s")
NOW = 1_700_000_000_000


def _record(fails: int, ago_ms: int) -> AttemptRecord:
    return AttemptRecord(identity="1.2.3.4", fail_count=fails, last_attempt_at=NOW - ago_ms)


def test_no_record_is_not_banned():
    assert not evaluate(None, CONFIG, NOW).banned


def test_below_threshold_is_not_banned():
    assert not evaluate(_record(4, 0), CONFIG, NOW).banned


def test_at_threshold_within_cooldown_is_banned():
    status = evaluate(_record(5, 0), CONFIG, NOW)
    assert status.banned
    assert "10 minute" in status.message
    assert status.retry_after == 600


def test_minutes_remaining_round_up():
    status = evaluate(_record(5, 60_001), CONFIG, NOW)
    assert status.banned
    assert "9 minute" in status.message

    status = evaluate(_record(7, 599_999), CONFIG, NOW)
    assert status.banned
    assert "1 minute" in status.message
    assert status.retry_after == 1


def test_elapsed_cooldown_is_not_banned():
    assert not evaluate(_record(5, 600_000), CONFIG, NOW).banned
    assert not evaluate(_record(50, 3_600_000), CONFIG, NOW).banned


def test_negative_cooldown_bans_forever():
    permanent = GuardConfig(max_attempts=5, cooldown_ms=-1, secret="s")
    status = evaluate(_record(5, 10 * 365 * 24 * 3_600_000), permanent, NOW)
    assert status.banned
    assert status.message == PERMANENT_MESSAGE
    assert status.retry_after is None


def test_evaluate_does_not_mutate_record():
    record = _record(6, 1_000)
    evaluate(record, CONFIG, NOW)
    assert record.fail_count == 6
    assert record.last_attempt_at == NOW - 1_000
