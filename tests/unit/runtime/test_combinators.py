# pylint: disable=missing-docstring
import logging
from unittest import mock

import pytest

from flowprep.abc.exceptions import ContractViolation, TaskTimeoutError
from flowprep.runtime.combinators import (
    Outcome,
    OutcomeStatus,
    all_of,
    all_settled,
    chain,
    race,
)
from flowprep.runtime.operations import delay, timeout
from flowprep.runtime.task import Task


def reject_later(scheduler, seconds, error):
    def _executor(_, settle_error):
        scheduler.call_later(seconds, settle_error, error)

    return Task(scheduler, _executor)


class TestChain:
    def test_runs_steps_in_order_feeding_previous_values(self, scheduler):
        calls = []

        def step(suffix):
            def _step(value):
                calls.append(value)
                return delay(scheduler, 0.1, value + suffix)

            return _step

        task = chain(scheduler, "file1", [step("+file2"), step("+file3")])
        assert scheduler.run_until_settled(task) == "file1+file2+file3"
        assert calls == ["file1", "file1+file2"]

    def test_accepts_plain_values(self, scheduler):
        task = chain(scheduler, 1, [lambda value: value + 1, lambda value: value * 10])
        assert scheduler.run_until_settled(task) == 20

    def test_without_steps_fulfills_with_start_value(self, scheduler):
        assert scheduler.run_until_settled(chain(scheduler, "start", [])) == "start"

    def test_stops_at_first_rejection(self, scheduler):
        step3 = mock.MagicMock()
        task = chain(
            scheduler,
            None,
            [
                lambda _: Task.resolved(scheduler, "Step 1 done"),
                lambda _: Task.rejected(scheduler, ValueError(" Step 2 failed")),
                step3,
            ],
        )
        with pytest.raises(ValueError, match="Step 2 failed"):
            scheduler.run_until_settled(task)
        step3.assert_not_called()

    def test_step_raising_synchronously_rejects_chain(self, scheduler):
        def broken(_):
            raise RuntimeError("broken step")

        step2 = mock.MagicMock()
        task = chain(scheduler, None, [broken, step2])
        with pytest.raises(RuntimeError, match="broken step"):
            scheduler.run_until_settled(task)
        step2.assert_not_called()

    def test_first_step_does_not_run_synchronously(self, scheduler):
        step = mock.MagicMock(return_value=1)
        chain(scheduler, None, [step])
        step.assert_not_called()
        scheduler.step()
        step.assert_called_once_with(None)

    def test_step_contract_violation_propagates(self, scheduler):
        def misuse(_):
            raise ContractViolation("misuse")

        chain(scheduler, None, [misuse])
        with pytest.raises(ContractViolation, match="misuse"):
            scheduler.run()


class TestAllOf:
    def test_fulfills_in_input_order_not_completion_order(self, scheduler):
        tasks = [
            delay(scheduler, 3, "file1"),
            delay(scheduler, 1, "file2"),
            delay(scheduler, 2, "file3"),
        ]
        assert scheduler.run_until_settled(all_of(scheduler, tasks)) == ["file1", "file2", "file3"]
        assert scheduler.time() == 3

    def test_rejects_with_first_rejection_by_time(self, scheduler):
        tasks = [
            delay(scheduler, 5, "slow"),
            timeout(scheduler, 2, "second"),
            timeout(scheduler, 1, "first"),
        ]
        with pytest.raises(TaskTimeoutError, match="first"):
            scheduler.run_until_settled(all_of(scheduler, tasks))
        assert scheduler.time() == 1

    def test_empty_input_fulfills_with_empty_list(self, scheduler):
        assert scheduler.run_until_settled(all_of(scheduler, [])) == []

    def test_treats_plain_values_as_fulfilled(self, scheduler):
        task = all_of(scheduler, [1, Task.resolved(scheduler, 2), "three"])
        assert scheduler.run_until_settled(task) == [1, 2, "three"]

    def test_surfaces_input_error_unwrapped(self, scheduler):
        error = ValueError("read failed")
        task = all_of(scheduler, [Task.rejected(scheduler, error)])
        with pytest.raises(ValueError) as raised:
            scheduler.run_until_settled(task)
        assert raised.value is error


class TestRace:
    def test_earlier_rejection_wins_over_later_fulfillment(self, scheduler):
        task = race(
            scheduler,
            [delay(scheduler, 0.05, "A"), reject_later(scheduler, 0.01, ValueError("B"))],
        )
        with pytest.raises(ValueError, match="B"):
            scheduler.run_until_settled(task)
        assert scheduler.time() == 0.01

    def test_earlier_fulfillment_wins_and_losers_keep_running(self, scheduler):
        loser = reject_later(scheduler, 2, ValueError("too late"))
        task = race(scheduler, [delay(scheduler, 1, "fast"), loser])
        assert scheduler.run_until_settled(task) == "fast"
        scheduler.run()
        assert isinstance(loser.exception(), ValueError)
        assert task.result() == "fast"

    def test_fetch_against_timeout(self, scheduler):
        fetch = delay(scheduler, 5, {"data": "payload"})
        task = race(scheduler, [fetch, timeout(scheduler, 1, " Timeout! Too slow.")])
        with pytest.raises(TaskTimeoutError, match="Timeout! Too slow."):
            scheduler.run_until_settled(task)

    def test_empty_input_never_settles_and_warns(self, scheduler, caplog):
        with caplog.at_level(logging.WARNING, logger="Combinator"):
            task = race(scheduler, [])
        scheduler.run()
        assert not task.done()
        assert "race called without inputs" in caplog.text


class TestAllSettled:
    def test_reports_outcomes_in_input_order(self, scheduler):
        error = ValueError("Payment Failed")
        tasks = [
            delay(scheduler, 2, "Order placed"),
            reject_later(scheduler, 1, error),
            delay(scheduler, 3, "Email sent"),
        ]
        outcomes = scheduler.run_until_settled(all_settled(scheduler, tasks))
        assert outcomes == [
            Outcome.fulfilled("Order placed"),
            Outcome.rejected(error),
            Outcome.fulfilled("Email sent"),
        ]
        assert [outcome.status for outcome in outcomes] == [
            OutcomeStatus.FULFILLED,
            OutcomeStatus.REJECTED,
            OutcomeStatus.FULFILLED,
        ]

    def test_never_rejects(self, scheduler, caplog):
        tasks = [
            Task.rejected(scheduler, ValueError("one")),
            Task.rejected(scheduler, KeyError("two")),
        ]
        outcomes = scheduler.run_until_settled(all_settled(scheduler, tasks))
        assert all(outcome.status is OutcomeStatus.REJECTED for outcome in outcomes)
        assert "Unhandled rejection" not in caplog.text

    def test_empty_input_fulfills_with_empty_list(self, scheduler):
        assert scheduler.run_until_settled(all_settled(scheduler, [])) == []


class TestOutcome:
    def test_fulfilled(self):
        outcome = Outcome.fulfilled(1)
        assert outcome.status is OutcomeStatus.FULFILLED
        assert outcome.value == 1
        assert outcome.error is None

    def test_rejected(self):
        error = ValueError("failed")
        outcome = Outcome.rejected(error)
        assert outcome.status is OutcomeStatus.REJECTED
        assert outcome.value is None
        assert outcome.error is error
