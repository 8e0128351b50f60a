import pytest

from strawberry_batchloader import BatchCancelledError, DeferredValue, DeferredValueStateError


def test_resolved_value() -> None:
    deferred = DeferredValue.resolved("value")
    assert deferred.done()
    assert deferred.result() == "value"
    assert deferred.exception() is None


def test_rejected_value_raises_its_error() -> None:
    error = ValueError("boom")
    deferred = DeferredValue.rejected(error)
    assert deferred.done()
    assert deferred.exception() is error
    with pytest.raises(ValueError, match="boom"):
        deferred.result()


def test_pending_value_has_no_result_yet() -> None:
    deferred = DeferredValue()
    assert not deferred.done()
    with pytest.raises(DeferredValueStateError):
        deferred.result()
    with pytest.raises(DeferredValueStateError):
        deferred.exception()


def test_value_is_settled_only_once() -> None:
    deferred = DeferredValue()
    deferred.set_result(1)
    with pytest.raises(DeferredValueStateError):
        deferred.set_result(2)
    with pytest.raises(DeferredValueStateError):
        deferred.set_exception(ValueError())
    assert deferred.result() == 1


def test_done_callbacks_run_on_settle_and_immediately_when_done() -> None:
    seen: list[str] = []
    deferred = DeferredValue()
    deferred.add_done_callback(lambda: seen.append(f"first {deferred.result()}"))
    assert seen == []

    deferred.set_result("x")
    assert seen == ["first x"]

    deferred.add_done_callback(lambda: seen.append(f"late {deferred.result()}"))
    assert seen == ["first x", "late x"]


def test_cancel_rejects_pending_value() -> None:
    deferred = DeferredValue()
    assert deferred.cancel() is True
    assert isinstance(deferred.exception(), BatchCancelledError)
    # already settled
    assert deferred.cancel() is False


def test_cancel_does_not_touch_settled_value() -> None:
    deferred = DeferredValue.resolved(1)
    assert deferred.cancel() is False
    assert deferred.result() == 1


def test_gather_keeps_order() -> None:
    first, second = DeferredValue(), DeferredValue()
    combined = DeferredValue.gather([first, second])
    second.set_result("b")
    assert not combined.done()
    first.set_result("a")
    assert combined.result() == ["a", "b"]


def test_gather_rejects_with_first_error() -> None:
    first, second = DeferredValue(), DeferredValue()
    combined = DeferredValue.gather([first, second])
    error = KeyError("missing")
    second.set_exception(error)
    assert combined.exception() is error
    # settling the rest does not change the outcome
    first.set_result("a")
    assert combined.exception() is error


def test_gather_of_nothing_is_an_empty_list() -> None:
    assert DeferredValue.gather([]).result() == []


def test_failing_done_callback_does_not_stop_the_others(caplog) -> None:
    seen: list[str] = []
    deferred = DeferredValue()

    def broken() -> None:
        raise RuntimeError("consumer bug")

    deferred.add_done_callback(broken)
    deferred.add_done_callback(lambda: seen.append(deferred.result()))

    deferred.set_result("x")
    assert seen == ["x"]
    assert "consumer bug" in caplog.text
