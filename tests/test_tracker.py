"""Tests for the confirmation tracker's state machine and polling loop."""

from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from solace.errors import ConfirmationTimeoutError, RpcError, TransportError
from solace.pneuma.rpc import RpcClient
from solace.pneuma.tracker import (
    ConfirmationTracker,
    PollPolicy,
    SubmissionRecord,
    SubmissionStatus,
)

from conftest import FakeNode

FAST = PollPolicy(interval=0.001, backoff=1.0, max_interval=0.001, poll_timeout=1.0)
SIGNATURE = bytes(range(64))


def _status(level: str, err: object = None) -> dict:
    return {"slot": 5, "confirmations": None, "err": err, "confirmationStatus": level}


def _record(**kwargs: object) -> SubmissionRecord:
    kwargs.setdefault("last_valid_block_height", 1000)
    return SubmissionRecord(signature=SIGNATURE, **kwargs)  # type: ignore[arg-type]


class TestPollPolicy:
    def test_capped_backoff(self) -> None:
        delays = PollPolicy(interval=0.5, backoff=2.0, max_interval=1.5).delays()
        assert [next(delays) for _ in range(4)] == [0.5, 1.0, 1.5, 1.5]

    def test_fixed_rate(self) -> None:
        delays = PollPolicy(interval=0.2, backoff=1.0).delays()
        assert [next(delays) for _ in range(3)] == [0.2, 0.2, 0.2]


class TestApplyStatus:
    """Status transitions driven by single status entries."""

    def test_unknown_commitment(self) -> None:
        with pytest.raises(ValueError):
            _record(target_commitment="max")

    def test_pending_to_failed(self) -> None:
        record = _record()
        assert record.apply_status(_status("processed", err={"InstructionError": [0, "Custom"]}))
        assert record.status is SubmissionStatus.FAILED
        assert record.error == {"InstructionError": [0, "Custom"]}
        assert record.done

    def test_ladder(self) -> None:
        record = _record(target_commitment="finalized")
        for level in ("processed", "confirmed", "finalized"):
            assert record.apply_status(_status(level))
            assert record.status.value == level
        assert record.status.terminal

    def test_never_moves_backwards(self) -> None:
        record = _record(target_commitment="finalized")
        record.apply_status(_status("confirmed"))
        assert not record.apply_status(_status("processed"))
        assert record.status is SubmissionStatus.CONFIRMED

    def test_terminal_is_sticky(self) -> None:
        record = _record()
        record.apply_status(_status("processed", err="boom"))
        assert not record.apply_status(_status("finalized"))
        assert record.status is SubmissionStatus.FAILED

    def test_legacy_confirmations(self) -> None:
        record = _record(target_commitment="finalized")
        record.apply_status({"slot": 1, "confirmations": 3, "err": None})
        assert record.status is SubmissionStatus.CONFIRMED
        record.apply_status({"slot": 2, "confirmations": None, "err": None})
        assert record.status is SubmissionStatus.FINALIZED

    def test_expires_only_past_last_valid_height(self) -> None:
        record = _record()
        assert not record.apply_status(None, block_height=1000)
        assert record.status is SubmissionStatus.PENDING
        assert record.apply_status(None, block_height=1001)
        assert record.status is SubmissionStatus.EXPIRED

    def test_no_expiry_after_status_seen(self) -> None:
        record = _record(target_commitment="finalized")
        record.apply_status(_status("processed"))
        assert not record.apply_status(None, block_height=5000)
        assert record.status is SubmissionStatus.PROCESSED

    def test_no_expiry_without_height(self) -> None:
        record = _record(last_valid_block_height=None)
        assert not record.apply_status(None, block_height=5000)
        assert record.status is SubmissionStatus.PENDING


class TestTrack:
    @pytest.mark.asyncio
    async def test_reaches_target(self, fake_node: FakeNode) -> None:
        fake_node.statuses = [None, _status("processed"), _status("confirmed")]
        async with fake_node.client() as client:
            record = await ConfirmationTracker(client, FAST).track(_record(), timeout=5)
        assert record.status is SubmissionStatus.CONFIRMED
        assert fake_node.calls.count("getSignatureStatuses") == 3

    @pytest.mark.asyncio
    async def test_pending_straight_to_failed(
        self, fake_node: FakeNode, caplog: pytest.LogCaptureFixture
    ) -> None:
        fake_node.statuses = [None, _status("confirmed", err={"InstructionError": [0, {"Custom": 1}]})]
        with caplog.at_level(logging.INFO, logger="solace.pneuma.tracker"):
            async with fake_node.client() as client:
                record = await ConfirmationTracker(client, FAST).track(_record(), timeout=5)
        assert record.status is SubmissionStatus.FAILED
        assert "pending -> failed" in caplog.text

    @pytest.mark.asyncio
    async def test_expired(self, fake_node: FakeNode) -> None:
        fake_node.block_height = 1001
        async with fake_node.client() as client:
            record = await ConfirmationTracker(client, FAST).track(_record(), timeout=5)
        assert record.status is SubmissionStatus.EXPIRED
        assert "getBlockHeight" in fake_node.calls

    @pytest.mark.asyncio
    async def test_no_height_query_without_last_valid(self, fake_node: FakeNode) -> None:
        fake_node.statuses = [_status("confirmed")]
        async with fake_node.client() as client:
            await ConfirmationTracker(client, FAST).track(
                _record(last_valid_block_height=None), timeout=5
            )
        assert "getBlockHeight" not in fake_node.calls

    @pytest.mark.asyncio
    async def test_timeout_is_not_expiry(self, fake_node: FakeNode) -> None:
        record = _record()
        async with fake_node.client() as client:
            with pytest.raises(ConfirmationTimeoutError) as exc_info:
                await ConfirmationTracker(client, FAST).track(record, timeout=0.05)
        assert exc_info.value.record is record
        assert record.status is SubmissionStatus.PENDING

    @pytest.mark.asyncio
    async def test_transient_errors_retried(self, fake_node: FakeNode) -> None:
        fake_node.statuses = [_status("confirmed")]
        failures = {"left": 2}

        def flaky(request: httpx.Request) -> httpx.Response:
            if failures["left"]:
                failures["left"] -= 1
                return httpx.Response(502)
            return fake_node.handler(request)

        policy = PollPolicy(interval=0.001, backoff=1.0, max_interval=0.001, max_poll_errors=3)
        async with RpcClient("http://fake-node", transport=httpx.MockTransport(flaky)) as client:
            record = await ConfirmationTracker(client, policy).track(_record(), timeout=5)
        assert record.status is SubmissionStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_error_limit(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        policy = PollPolicy(interval=0.001, backoff=1.0, max_interval=0.001, max_poll_errors=2)
        async with RpcClient("http://fake-node", transport=transport) as client:
            with pytest.raises(TransportError) as exc_info:
                await ConfirmationTracker(client, policy).track(_record(), timeout=5)
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_rpc_error_on_status_query(self, fake_node: FakeNode) -> None:
        def broken(request: httpx.Request) -> httpx.Response:
            body = [
                {"jsonrpc": "2.0", "id": 0, "error": {"code": -32005, "message": "Node is behind"}},
                {"jsonrpc": "2.0", "id": 1, "result": 900},
            ]
            return httpx.Response(200, json=body)

        policy = PollPolicy(interval=0.001, backoff=1.0, max_interval=0.001, max_poll_errors=1)
        async with RpcClient("http://fake-node", transport=httpx.MockTransport(broken)) as client:
            with pytest.raises(RpcError) as exc_info:
                await ConfirmationTracker(client, policy).track(_record(), timeout=5)
        assert exc_info.value.code == -32005

    @pytest.mark.asyncio
    async def test_slow_poll_counts_as_error(self) -> None:
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json=[])

        policy = PollPolicy(interval=0.001, poll_timeout=0.01, max_poll_errors=1)
        async with RpcClient("http://fake-node", transport=httpx.MockTransport(slow)) as client:
            with pytest.raises(TransportError, match="timed out"):
                await ConfirmationTracker(client, policy).track(_record(), timeout=5)

    @pytest.mark.asyncio
    async def test_cancellation_stops_polling(
        self, fake_node: FakeNode, caplog: pytest.LogCaptureFixture
    ) -> None:
        async with fake_node.client() as client:
            with caplog.at_level(logging.DEBUG, logger="solace.pneuma.tracker"):
                tracker = ConfirmationTracker(client, FAST)
                for _ in range(20):
                    task = asyncio.create_task(tracker.track(_record(), timeout=30))
                    await asyncio.sleep(0.01)
                    task.cancel()
                    done, _pending = await asyncio.wait({task}, timeout=1.0)
                    assert task in done, "track() kept running after cancel"
                    assert task.cancelled()
            polls = fake_node.calls.count("getSignatureStatuses")
            await asyncio.sleep(0.02)
            assert fake_node.calls.count("getSignatureStatuses") == polls
        assert "Stopped tracking" in caplog.text

    @pytest.mark.asyncio
    async def test_deadline_applies_during_slow_poll(self) -> None:
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=[])

        policy = PollPolicy(interval=0.001, poll_timeout=10.0)
        async with RpcClient("http://fake-node", transport=httpx.MockTransport(slow)) as client:
            task = asyncio.create_task(
                ConfirmationTracker(client, policy).track(_record(), timeout=0.05)
            )
            done, _pending = await asyncio.wait({task}, timeout=1.0)
            assert task in done
            assert isinstance(task.exception(), ConfirmationTimeoutError)

    @pytest.mark.asyncio
    async def test_track_many_isolates_failures(self, fake_node: FakeNode) -> None:
        fake_node.statuses = [_status("confirmed")]
        confirmed = _record()
        stuck = SubmissionRecord(signature=bytes(64), target_commitment="finalized")
        async with fake_node.client() as client:
            results = await ConfirmationTracker(client, FAST).track_many(
                [confirmed, stuck], timeout=0.1
            )
        assert results[0] is confirmed
        assert confirmed.status is SubmissionStatus.CONFIRMED
        assert isinstance(results[1], ConfirmationTimeoutError)
        assert stuck.status is SubmissionStatus.CONFIRMED
