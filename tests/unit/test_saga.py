"""Tests for saga steps, sequences and compensation order."""

from __future__ import annotations

from kungfu import Error, Ok

from naaz import lift as L
from naaz import saga as S
from naaz.errors import AppError, as_app_error


class Journal:
    """Records actions and compensations in the order they happen."""

    def __init__(self) -> None:
        self.events: list[str] = []

    def action(self, name: str, *, fails: bool = False):
        async def run() -> str:
            if fails:
                raise AppError(f"{name} failed")
            self.events.append(f"do:{name}")
            return name

        return L.remote(run)

    async def undo(self, value: str) -> None:
        self.events.append(f"undo:{value}")

    async def broken_undo(self, value: str) -> None:
        self.events.append(f"undo-failed:{value}")
        raise RuntimeError("compensation failed")


class TestRun:
    async def test_single_step_success(self) -> None:
        journal = Journal()
        match await S.run(S.step(journal.action("a"), journal.undo, name="a")):
            case Ok(result):
                assert result.value == "a"
                assert result.steps_executed == 1
                assert result.compensators_recorded == 1
            case Error(e):
                raise AssertionError(e)

    async def test_chain_rolls_back_first_step(self) -> None:
        journal = Journal()
        chain = S.step(journal.action("a"), journal.undo, name="a").then(
            lambda _: S.step(journal.action("b", fails=True), journal.undo, name="b")
        )
        match await S.run_chain(chain):
            case Error(failure):
                assert failure.step_failed == 2
                assert failure.step_name == "b"
                assert failure.compensators_run == 1
            case Ok(_):
                raise AssertionError("expected failure")
        assert journal.events == ["do:a", "undo:a"]


class TestSequence:
    async def test_all_steps_run_in_order(self) -> None:
        journal = Journal()
        flow = S.sequence(
            S.step(journal.action("a"), journal.undo, name="a"),
            S.step(journal.action("b"), name="b"),
            S.step(journal.action("c"), journal.undo, name="c"),
        )
        match await S.run_sequence(flow):
            case Ok(result):
                assert result.value == ("a", "b", "c")
                assert result.steps_executed == 3
                assert result.compensators_recorded == 2
            case Error(e):
                raise AssertionError(e)
        assert journal.events == ["do:a", "do:b", "do:c"]

    async def test_failure_compensates_in_reverse(self) -> None:
        journal = Journal()
        flow = S.sequence(
            S.step(journal.action("a"), journal.undo, name="a"),
            S.step(journal.action("b"), journal.undo, name="b"),
            S.step(journal.action("c", fails=True), journal.undo, name="c"),
            S.step(journal.action("d"), journal.undo, name="d"),
        )
        match await S.run_sequence(flow):
            case Error(failure):
                assert failure.step_failed == 3
                assert failure.step_name == "c"
                assert str(failure.error) == "c failed"
                assert failure.rollback_complete
            case Ok(_):
                raise AssertionError("expected failure")
        assert journal.events == ["do:a", "do:b", "undo:b", "undo:a"]

    async def test_failing_compensator_does_not_stop_rollback(self) -> None:
        journal = Journal()
        flow = S.sequence(
            S.step(journal.action("a"), journal.undo, name="a"),
            S.step(journal.action("b"), journal.broken_undo, name="b"),
            S.step(journal.action("c", fails=True), name="c"),
        )
        match await S.run_sequence(flow):
            case Error(failure):
                assert failure.compensators_run == 1
                assert failure.compensators_failed == 1
                assert not failure.rollback_complete
                assert str(failure.error) == "c failed"
            case Ok(_):
                raise AssertionError("expected failure")
        assert journal.events == ["do:a", "do:b", "undo-failed:b", "undo:a"]

    async def test_then_appends_steps(self) -> None:
        journal = Journal()
        flow = S.sequence(S.step(journal.action("a"))).then(S.step(journal.action("b")))
        assert len(flow.steps) == 2

    async def test_foreign_exception_is_wrapped(self) -> None:
        async def explode() -> None:
            raise ValueError("bad value")

        flow = S.sequence(S.from_async(explode, on_error=as_app_error, name="explode"))
        match await S.run_sequence(flow):
            case Error(failure):
                assert isinstance(failure.error, AppError)
                assert isinstance(failure.error.__cause__, ValueError)
            case Ok(_):
                raise AssertionError("expected failure")
