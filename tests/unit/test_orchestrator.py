"""Unit tests for UniqueGenerationOrchestrator."""

import hashlib
import itertools
import threading

import pytest

from Assessments.generation.errors import GenerationFailure
from Assessments.generation.fingerprint import fingerprint_item
from Assessments.generation.orchestrator import UniqueGenerationOrchestrator
from Assessments.generation.seen import SeenFingerprintSet
from Assessments.generation.types import GenerationPolicy, GenerationRequest


def batch_request(count, **kwargs):
    return GenerationRequest(
        topic_skills=("Fraud Detection", "Forensic Auditing"),
        difficulty=kwargs.pop("difficulty", "advanced"),
        challenge_type=kwargs.pop("challenge_type", "case_study"),
        desired_count=count,
        **kwargs,
    )


class TestSingleSlot:

    def test_scenario_accepts_and_saves(self, scripted_client, recording_gateway, item_factory, fraud_request):
        client = scripted_client([item_factory("T", "D", "A")])
        gateway = recording_gateway()
        seen = SeenFingerprintSet()
        orch = UniqueGenerationOrchestrator(client, seen=seen, gateway=gateway)

        result = orch.run(fraud_request)

        expected = hashlib.sha256("t\x1fd\x1fa".encode("utf-8")).hexdigest()[:32]
        assert result.produced == 1
        assert result.accepted[0].fingerprint == expected
        assert seen.contains(expected)
        assert len(gateway.saved) == 1
        assert result.persisted_ids == {0: 1}
        assert len(client.calls) == 1

    def test_preloaded_duplicate_exhausts_attempts(self, scripted_client, item_factory, fraud_request):
        dup = item_factory("Known", "Known scenario", "Known answer")
        client = scripted_client([dup])
        seen = SeenFingerprintSet([fingerprint_item(dup)])
        orch = UniqueGenerationOrchestrator(client, seen=seen)

        result = orch.run(fraud_request)

        assert result.produced == 0
        assert result.duplicates_rejected == 3
        assert result.skipped_slots == 1
        assert len(client.calls) == 3

    def test_always_failing_client_is_bounded(self, scripted_client, fraud_request):
        client = scripted_client([GenerationFailure("timeout")])
        orch = UniqueGenerationOrchestrator(client)

        result = orch.run(fraud_request)

        assert len(client.calls) == 3
        assert result.produced == 0
        assert result.generation_failures == 3
        assert result.skipped_slots == 1

    def test_unexpected_client_error_consumes_attempt(self, scripted_client, item_factory, fraud_request):
        client = scripted_client([IndexError("list index out of range"), item_factory("Recovered")])
        orch = UniqueGenerationOrchestrator(client)

        result = orch.run(fraud_request)

        assert result.produced == 1
        assert result.generation_failures == 1
        assert len(client.calls) == 2

    def test_custom_attempt_budget(self, scripted_client, fraud_request):
        client = scripted_client([GenerationFailure("bad json")])
        orch = UniqueGenerationOrchestrator(client, policy=GenerationPolicy(max_attempts_per_item=5))

        orch.run(fraud_request)

        assert len(client.calls) == 5

    def test_temperature_escalates(self, scripted_client, fraud_request):
        client = scripted_client([GenerationFailure("timeout")])
        orch = UniqueGenerationOrchestrator(client)

        orch.run(fraud_request)

        temps = client.temperatures
        assert temps == [0.9, 1.0, 1.1]
        assert all(a < b for a, b in zip(temps, temps[1:]))

    def test_failure_then_duplicate_then_unique(self, scripted_client, item_factory, fraud_request):
        dup = item_factory("Old")
        fresh = item_factory("New")
        client = scripted_client([GenerationFailure("503"), dup, fresh])
        orch = UniqueGenerationOrchestrator(client, seen=SeenFingerprintSet([fingerprint_item(dup)]))

        result = orch.run(fraud_request)

        assert result.produced == 1
        assert result.accepted[0].item.title == "New"
        assert result.generation_failures == 1
        assert result.duplicates_rejected == 1

    def test_prompt_carries_request_and_hints(self, scripted_client, item_factory):
        client = scripted_client([item_factory("T")])
        seen = SeenFingerprintSet([f"{i:032x}" for i in range(25)])
        orch = UniqueGenerationOrchestrator(client, seen=seen)

        orch.run(batch_request(1))

        prompt = client.calls[0][0]
        assert "Fraud Detection, Forensic Auditing" in prompt
        assert "advanced" in prompt
        assert "case_study" in prompt
        assert f"{24:032x}" in prompt
        # only the last 20 fingerprints are hinted
        assert f"{4:032x}" not in prompt
        assert f"{5:032x}" in prompt

    def test_custom_prompt_builder(self, scripted_client, item_factory, fraud_request):
        client = scripted_client([item_factory("T")])
        orch = UniqueGenerationOrchestrator(
            client, prompt_builder=lambda req, hints: f"{req.difficulty}|{len(hints)}"
        )

        orch.run(fraud_request)

        assert client.calls[0][0] == "intermediate|0"


class TestBatch:

    def test_partial_success(self, scripted_client, item_factory):
        dup = item_factory("Duplicate")
        script = [
            item_factory("U1"),
            dup, dup, dup,
            item_factory("U2"),
            dup, dup, dup,
            item_factory("U3"),
        ]
        client = scripted_client(script)
        orch = UniqueGenerationOrchestrator(client, seen=SeenFingerprintSet([fingerprint_item(dup)]))

        result = orch.run(batch_request(5))

        assert [a.item.title for a in result.accepted] == ["U1", "U2", "U3"]
        assert [a.slot for a in result.accepted] == [0, 2, 4]
        assert result.duplicates_rejected == 6
        assert result.skipped_slots == 2

    def test_items_accepted_earlier_in_batch_are_rejected_later(self, scripted_client, item_factory):
        same = item_factory("Same every time")
        client = scripted_client([same])
        orch = UniqueGenerationOrchestrator(client)

        result = orch.run(batch_request(3))

        assert result.produced == 1
        assert result.duplicates_rejected == 6
        assert len(client.calls) == 7

    def test_persistence_failure_does_not_affect_siblings(self, scripted_client, recording_gateway, item_factory):
        client = scripted_client([item_factory("A"), item_factory("B"), item_factory("C")])
        gateway = recording_gateway(fail_titles={"B"})
        orch = UniqueGenerationOrchestrator(client, gateway=gateway)

        result = orch.run(batch_request(3))

        assert result.produced == 3
        assert [a.item.title for a in gateway.saved] == ["A", "C"]
        assert result.persisted == 2
        assert set(result.persistence_errors) == {1}
        assert "disk full" in result.persistence_errors[1]

    def test_no_gateway_means_preview(self, scripted_client, item_factory):
        client = scripted_client([item_factory("A"), item_factory("B")])
        orch = UniqueGenerationOrchestrator(client)

        result = orch.run(batch_request(2))

        assert result.produced == 2
        assert result.persisted == 0
        assert result.persistence_failures == 0

    def test_progress_events(self, scripted_client, item_factory):
        dup = item_factory("Dup")
        client = scripted_client([item_factory("A"), dup, dup, dup])
        events = []
        orch = UniqueGenerationOrchestrator(client, seen=SeenFingerprintSet([fingerprint_item(dup)]))

        orch.run(batch_request(2), on_progress=events.append)

        assert [(e.slot, e.completed, e.total) for e in events] == [(0, 1, 2), (1, 2, 2)]
        assert events[-1].produced == 1
        assert events[-1].duplicates_rejected == 3

    def test_failing_progress_callback_is_ignored(self, scripted_client, item_factory):
        client = scripted_client([item_factory("A"), item_factory("B")])
        orch = UniqueGenerationOrchestrator(client)

        def boom(event):
            raise RuntimeError("render failed")

        result = orch.run(batch_request(2), on_progress=boom)

        assert result.produced == 2

    def test_cancel_keeps_accepted_items(self, scripted_client, item_factory):
        client = scripted_client([item_factory("A"), item_factory("B"), item_factory("C")])
        cancel = threading.Event()
        orch = UniqueGenerationOrchestrator(client)

        result = orch.run(batch_request(3), on_progress=lambda e: cancel.set(), cancel_event=cancel)

        assert result.cancelled is True
        assert [a.item.title for a in result.accepted] == ["A"]
        assert len(client.calls) == 1
        assert result.skipped_slots == 0

    def test_cancel_before_start(self, scripted_client, item_factory):
        client = scripted_client([item_factory("A")])
        cancel = threading.Event()
        cancel.set()

        result = UniqueGenerationOrchestrator(client).run(batch_request(2), cancel_event=cancel)

        assert result.cancelled is True
        assert result.produced == 0
        assert client.calls == []


class TestParallelBatch:

    def test_parallel_never_accepts_same_fingerprint_twice(self, scripted_client, item_factory):
        client = scripted_client([item_factory("Same")])
        orch = UniqueGenerationOrchestrator(client, policy=GenerationPolicy(max_workers=4))

        result = orch.run(batch_request(4))

        assert result.produced == 1
        assert result.duplicates_rejected == 9
        assert len(client.calls) == 10

    def test_parallel_workers_release_gateway(self, item_factory, recording_gateway):
        counter = itertools.count()
        lock = threading.Lock()

        class UniqueClient:
            def generate(self, prompt, temperature):
                with lock:
                    n = next(counter)
                return item_factory(f"Challenge {n}")

        class ReleasingGateway(recording_gateway):
            def __init__(self):
                super().__init__()
                self.released = 0

            def release(self):
                with self._lock:
                    self.released += 1

        gateway = ReleasingGateway()
        orch = UniqueGenerationOrchestrator(UniqueClient(), gateway=gateway, policy=GenerationPolicy(max_workers=2))

        result = orch.run(batch_request(4))

        assert result.persisted == 4
        assert gateway.released == 4

    def test_sequential_run_keeps_gateway_resources(self, scripted_client, item_factory, recording_gateway):
        class ReleasingGateway(recording_gateway):
            released = 0

            def release(self):
                self.released += 1

        gateway = ReleasingGateway()
        UniqueGenerationOrchestrator(scripted_client([item_factory("A"), item_factory("B")]), gateway=gateway).run(
            batch_request(2)
        )

        assert gateway.released == 0

    def test_parallel_results_in_slot_order(self, item_factory):
        counter = itertools.count()
        lock = threading.Lock()

        class UniqueClient:
            def generate(self, prompt, temperature):
                with lock:
                    n = next(counter)
                return item_factory(f"Challenge {n}")

        orch = UniqueGenerationOrchestrator(UniqueClient(), policy=GenerationPolicy(max_workers=3))

        result = orch.run(batch_request(6))

        assert result.produced == 6
        assert [a.slot for a in result.accepted] == [0, 1, 2, 3, 4, 5]
        assert len({a.fingerprint for a in result.accepted}) == 6


class TestGenerationRequest:

    def test_rejects_unknown_difficulty(self):
        with pytest.raises(ValueError):
            GenerationRequest(topic_skills=("x",), difficulty="guru", challenge_type="scenario")

    def test_rejects_unknown_challenge_type(self):
        with pytest.raises(ValueError):
            GenerationRequest(topic_skills=("x",), difficulty="expert", challenge_type="coding")

    def test_rejects_empty_skills(self):
        with pytest.raises(ValueError):
            GenerationRequest(topic_skills=(" ",), difficulty="expert", challenge_type="scenario")

    def test_rejects_zero_count(self):
        with pytest.raises(ValueError):
            GenerationRequest(topic_skills=("x",), difficulty="expert", challenge_type="scenario", desired_count=0)

    def test_skills_deduplicated_in_order(self):
        req = GenerationRequest(topic_skills=(" AML ", "KYC", "AML"), difficulty="beginner", challenge_type="technical")
        assert req.topic_skills == ("AML", "KYC")


class TestGenerationPolicy:

    def test_from_settings(self):
        policy = GenerationPolicy.from_settings({
            "MAX_ATTEMPTS_PER_ITEM": "4",
            "BASE_TEMPERATURE": 0.7,
            "MAX_WORKERS": 0,
        })
        assert policy.max_attempts_per_item == 4
        assert policy.base_temperature == 0.7
        assert policy.max_workers == 1
        assert policy.exclusion_hint_limit == 20

    def test_temperature_for(self):
        policy = GenerationPolicy(base_temperature=0.7, temperature_step=0.1)
        assert [policy.temperature_for(a) for a in (1, 2, 3)] == [0.8, 0.9, 1.0]
