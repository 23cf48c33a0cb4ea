import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence, Tuple

from Assessments.agents.challenge_prompts import build_challenge_prompt
from Assessments.generation.client import GenerationClient
from Assessments.generation.errors import GenerationFailure, PersistenceFailure
from Assessments.generation.fingerprint import fingerprint_item
from Assessments.generation.gateway import PersistenceGateway
from Assessments.generation.seen import SeenFingerprintSet
from Assessments.generation.types import (
    AcceptedItem,
    BatchResult,
    GenerationPolicy,
    GenerationRequest,
    ProgressEvent,
)

logger = logging.getLogger(__name__)

PromptBuilder = Callable[[GenerationRequest, Sequence[str]], str]
ProgressCallback = Callable[[ProgressEvent], None]


class UniqueGenerationOrchestrator:
    """
    Drives the bounded retry loop that produces unique challenges.

    For every desired slot the client is asked up to
    ``policy.max_attempts_per_item`` times, with the sampling temperature
    rising on each attempt. A candidate is accepted only if its fingerprint
    was not seen before; generation failures and duplicates consume the same
    attempt budget. A slot that runs out of attempts is skipped, so a batch
    can return fewer items than requested but never raises for a single
    attempt or item.
    """

    def __init__(
        self,
        client: GenerationClient,
        seen: Optional[SeenFingerprintSet] = None,
        gateway: Optional[PersistenceGateway] = None,
        policy: Optional[GenerationPolicy] = None,
        prompt_builder: PromptBuilder = build_challenge_prompt,
    ):
        self.client = client
        self.seen = seen if seen is not None else SeenFingerprintSet()
        self.gateway = gateway
        self.policy = policy or GenerationPolicy()
        self.prompt_builder = prompt_builder
        self._lock = threading.Lock()

    def run(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        result = BatchResult(requested=request.desired_count)
        slots = range(request.desired_count)
        completed = [0]

        def process(slot: int) -> None:
            if cancel_event is not None and cancel_event.is_set():
                with self._lock:
                    result.cancelled = True
                return
            accepted, interrupted = self._acquire(slot, request, result, cancel_event)
            if accepted is not None:
                self._persist(accepted, request, result)
            with self._lock:
                if accepted is not None:
                    result.accepted.append(accepted)
                elif interrupted:
                    result.cancelled = True
                else:
                    result.skipped_slots += 1
                completed[0] += 1
                event = ProgressEvent(
                    slot=slot,
                    completed=completed[0],
                    total=request.desired_count,
                    produced=len(result.accepted),
                    duplicates_rejected=result.duplicates_rejected,
                    generation_failures=result.generation_failures,
                )
            if on_progress is not None:
                self._notify(on_progress, event)

        def process_in_worker(slot: int) -> None:
            try:
                process(slot)
            finally:
                if self.gateway is not None:
                    self.gateway.release()

        if self.policy.max_workers > 1 and request.desired_count > 1:
            with ThreadPoolExecutor(max_workers=self.policy.max_workers) as pool:
                list(pool.map(process_in_worker, slots))
        else:
            for slot in slots:
                process(slot)

        result.accepted.sort(key=lambda a: a.slot)
        logger.info(
            "Challenge batch finished: requested=%s produced=%s duplicates=%s failures=%s skipped=%s",
            result.requested,
            result.produced,
            result.duplicates_rejected,
            result.generation_failures,
            result.skipped_slots,
        )
        return result

    def _acquire(
        self,
        slot: int,
        request: GenerationRequest,
        result: BatchResult,
        cancel_event: Optional[threading.Event],
    ) -> Tuple[Optional[AcceptedItem], bool]:
        """Return (accepted item or None, whether the slot was cancelled)."""
        attempt = 0
        while attempt < self.policy.max_attempts_per_item:
            if cancel_event is not None and cancel_event.is_set():
                return None, True
            attempt += 1
            temperature = self.policy.temperature_for(attempt)
            prompt = self.prompt_builder(request, self.seen.recent(self.policy.exclusion_hint_limit))

            try:
                candidate = self.client.generate(prompt, temperature)
            except GenerationFailure as e:
                with self._lock:
                    result.generation_failures += 1
                logger.warning(
                    "Generation failed for challenge %s (attempt %s/%s): %s",
                    slot + 1, attempt, self.policy.max_attempts_per_item, e,
                )
                continue
            except Exception:
                with self._lock:
                    result.generation_failures += 1
                logger.exception(
                    "Unexpected error generating challenge %s (attempt %s/%s)",
                    slot + 1, attempt, self.policy.max_attempts_per_item,
                )
                continue

            fp = fingerprint_item(candidate)
            if not self.seen.add_if_absent(fp):
                with self._lock:
                    result.duplicates_rejected += 1
                logger.info(
                    "Duplicate detected for challenge %s, attempt %s (fingerprint %s)",
                    slot + 1, attempt, fp,
                )
                continue

            return AcceptedItem(item=candidate, fingerprint=fp, slot=slot), False

        logger.info("Challenge %s skipped after %s attempts", slot + 1, attempt)
        return None, False

    def _persist(self, accepted: AcceptedItem, request: GenerationRequest, result: BatchResult) -> None:
        if self.gateway is None:
            return
        try:
            persisted_id = self.gateway.save(accepted, request)
        except PersistenceFailure as e:
            logger.error("Saving challenge %s failed: %s", accepted.slot + 1, e)
            with self._lock:
                result.persistence_errors[accepted.slot] = str(e)
            return
        with self._lock:
            result.persisted_ids[accepted.slot] = persisted_id

    @staticmethod
    def _notify(on_progress: ProgressCallback, event: ProgressEvent) -> None:
        try:
            on_progress(event)
        except Exception:
            logger.exception("Progress callback failed")
