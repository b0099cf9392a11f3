"""
Submission coordinator for one assessment session.

Drives the per-question countdown and arbitrates between user-initiated
submit/skip and timer-driven auto-submit. Every trigger goes through
_begin_submission, which checks and flips the question state before the
first await, so at most one submission request is ever in flight for a
question even when the timer and the user fire in the same loop tick.

Failure policy: transport errors and server errors are retried with linear
backoff up to ClientConfig.submit_attempts. A duplicate submission means the
answer is already recorded and settles the question. When retries run out
(or the server rejects the request outright) the question returns to
PENDING with last_error set, and the listener is told so the user can try
again. A question whose timer already expired may then be resubmitted empty,
which records it as a skip.
"""
import asyncio
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Set

from mockprep.client.api import (
    ApiError,
    ClientConfig,
    DuplicateSubmissionError,
    SessionApiClient,
    SubmissionTransportError,
)
from mockprep.client.state import (
    Graded,
    PendingSubmission,
    QuestionSlot,
    QuestionState,
    SessionListener,
    Unanswered,
)
from mockprep.client.timer import CountdownTimer

logger = logging.getLogger(__name__)

QUIZ = "quiz"


class SubmissionCoordinator:
    """Session-scoped state machine for answering questions in order."""

    def __init__(
        self,
        api: SessionApiClient,
        session_id: int,
        kind: str,
        slots: List[QuestionSlot],
        time_limit: Optional[int] = None,
        listener: Optional[SessionListener] = None,
        config: Optional[ClientConfig] = None,
        timer_factory: Callable[..., CountdownTimer] = CountdownTimer,
    ):
        if not slots:
            raise ValueError("A session needs at least one question")
        self.api = api
        self.session_id = session_id
        self.kind = kind
        self.slots = slots
        self.time_limit = time_limit
        self.listener = listener or SessionListener()
        self.config = config or api.config
        self._timer_factory = timer_factory

        self._index = -1
        self._timer: Optional[CountdownTimer] = None
        self._tasks: Set[asyncio.Task] = set()
        self._finished = asyncio.Event()

        self.summary: Optional[Dict[str, Any]] = None
        self.results: Optional[Dict[str, Any]] = None
        self.finish_error: Optional[Exception] = None

    @classmethod
    def from_created_session(
        cls,
        api: SessionApiClient,
        created: Dict[str, Any],
        listener: Optional[SessionListener] = None,
        **kwargs: Any,
    ) -> "SubmissionCoordinator":
        """Build a coordinator from a create-session response body."""
        session = created["session"]
        slots = [
            QuestionSlot(
                question_id=q["id"],
                content=q["content"],
                options=q.get("options"),
            )
            for q in created["questions"]
        ]
        return cls(
            api,
            session_id=session["id"],
            kind=session["kind"],
            slots=slots,
            time_limit=session.get("time_limit_seconds"),
            listener=listener,
            **kwargs,
        )

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> Optional[QuestionSlot]:
        if 0 <= self._index < len(self.slots):
            return self.slots[self._index]
        return None

    @property
    def timer(self) -> Optional[CountdownTimer]:
        return self._timer

    @property
    def is_finished(self) -> bool:
        return self._finished.is_set()

    @property
    def all_settled(self) -> bool:
        return all(slot.state == QuestionState.SETTLED for slot in self.slots)

    def start(self) -> None:
        if self._index != -1:
            raise RuntimeError("Session already started")
        self._begin_question(0)

    # User actions

    def update_answer(self, text: str) -> None:
        slot = self.current
        if slot is not None and slot.state == QuestionState.PENDING:
            slot.draft_text = text

    def select_option(self, option: str) -> None:
        slot = self.current
        if slot is not None and slot.state == QuestionState.PENDING:
            slot.selected_option = option

    def request_submit(self) -> Optional[asyncio.Task]:
        """Submit the current answer.

        Returns the submission task, or None when the trigger was ignored:
        a request is already in flight, the question is settled, or the
        answer is empty while time remains.
        """
        slot = self.current
        if slot is None:
            return None
        content = self._content(slot)
        if not content.strip():
            if not slot.expired:
                logger.debug(f"Ignoring empty submit for question {slot.question_id}")
                return None
            return self._begin_submission(slot, PendingSubmission("", skip=True))
        return self._begin_submission(slot, PendingSubmission(content))

    def request_skip(self) -> Optional[asyncio.Task]:
        slot = self.current
        if slot is None:
            return None
        return self._begin_submission(slot, PendingSubmission("", skip=True))

    # Timer callbacks

    def _on_timer_expired(self, question_id: int) -> None:
        slot = self.current
        if slot is None or slot.question_id != question_id:
            return
        slot.expired = True
        content = self._content(slot)
        if content.strip():
            pending = PendingSubmission(content)
        else:
            pending = PendingSubmission("", skip=True)
        if self._begin_submission(slot, pending) is not None:
            logger.info(f"Time expired, auto-submitting question {question_id}")

    def _on_tick(self, question_id: int, remaining: int) -> None:
        self.listener.on_tick(question_id, remaining)

    def _on_warning(self, question_id: int, remaining: int) -> None:
        self.listener.on_time_warning(question_id, remaining)

    # State machine

    def _content(self, slot: QuestionSlot) -> str:
        if self.kind == QUIZ:
            return slot.selected_option or ""
        return slot.draft_text

    def _begin_question(self, index: int) -> None:
        self._cancel_timer()
        self._index = index
        slot = self.slots[index]
        self.listener.on_question_started(index, slot, self.time_limit)

        if self.time_limit:
            self._timer = self._timer_factory(
                self.time_limit,
                partial(self._on_timer_expired, slot.question_id),
                on_tick=partial(self._on_tick, slot.question_id),
                on_warning=partial(self._on_warning, slot.question_id),
                warning_at=self.config.warning_seconds,
                tick_interval=self.config.tick_interval,
            )
            self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _begin_submission(
        self, slot: QuestionSlot, pending: PendingSubmission
    ) -> Optional[asyncio.Task]:
        # Check-and-set with no await in between
        if slot.state != QuestionState.PENDING:
            return None
        slot.state = QuestionState.SUBMITTING
        slot.answer = pending
        slot.last_error = None

        task = asyncio.get_running_loop().create_task(self._send(slot, pending))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _payload(self, pending: PendingSubmission) -> Dict[str, Any]:
        if self.kind == QUIZ:
            return {"selected_option": pending.text or None, "skip": pending.skip}
        return {"answer_text": pending.text, "skip": pending.skip}

    async def _send(self, slot: QuestionSlot, pending: PendingSubmission) -> None:
        attempts = max(1, self.config.submit_attempts)
        last_error: Optional[Exception] = None

        try:
            for attempt in range(1, attempts + 1):
                try:
                    data = await self.api.submit_answer(
                        self.session_id, slot.question_id, **self._payload(pending)
                    )
                except DuplicateSubmissionError:
                    logger.info(
                        f"Question {slot.question_id} already recorded, settling"
                    )
                    graded = await self._recorded_answer(slot, pending)
                    await self._settle(slot, graded)
                    return
                except SubmissionTransportError as e:
                    last_error = e
                    if attempt < attempts:
                        delay = self.config.retry_backoff * attempt
                        logger.warning(
                            f"Submit attempt {attempt}/{attempts} for question "
                            f"{slot.question_id} failed: {e} (retrying in {delay:.2f}s)"
                        )
                        await asyncio.sleep(delay)
                except ApiError as e:
                    last_error = e
                    break
                else:
                    await self._settle(slot, Graded.from_response(data))
                    return
        except asyncio.CancelledError:
            if slot.state == QuestionState.SUBMITTING:
                self._reset(slot, None)
            raise
        except Exception as e:
            if slot.state == QuestionState.SUBMITTING:
                self._fail(slot, e)
            raise

        self._fail(slot, last_error)

    async def _recorded_answer(
        self, slot: QuestionSlot, pending: PendingSubmission
    ) -> Graded:
        """Fetch the stored answer after a duplicate response."""
        try:
            results = await self.api.get_results(self.session_id)
        except (ApiError, SubmissionTransportError) as e:
            logger.warning(f"Could not fetch recorded answer: {e}")
        else:
            for item in results.get("per_question", []):
                if (
                    item.get("question_id") == slot.question_id
                    and item.get("status") == "graded"
                ):
                    return Graded.from_response(item)

        return Graded(
            text=pending.text,
            score=None,
            is_skipped=pending.skip,
            already_recorded=True,
        )

    async def _settle(self, slot: QuestionSlot, graded: Graded) -> None:
        slot.state = QuestionState.SETTLED
        slot.answer = graded
        if slot is self.current:
            self._cancel_timer()
        self.listener.on_settled(slot.question_id, graded)

        if slot is not self.current:
            return
        next_index = self._index + 1
        if next_index < len(self.slots):
            self._begin_question(next_index)
        else:
            await self._finish()

    def _reset(self, slot: QuestionSlot, error: Optional[Exception]) -> None:
        slot.state = QuestionState.PENDING
        slot.answer = Unanswered()
        slot.last_error = error

    def _fail(self, slot: QuestionSlot, error: Optional[Exception]) -> None:
        error = error or RuntimeError("Submission failed")
        self._reset(slot, error)
        logger.warning(
            f"Submission for question {slot.question_id} failed, "
            f"returning to pending: {error}"
        )
        self.listener.on_submission_failed(slot.question_id, error)

    async def _finish(self) -> None:
        self.finish_error = None
        try:
            self.summary = await self.api.finish_session(self.session_id)
            self.results = await self.api.get_results(self.session_id)
        except (ApiError, SubmissionTransportError) as e:
            self.finish_error = e
            logger.warning(f"Finishing session {self.session_id} failed: {e}")
            self.listener.on_finish_failed(e)
            return

        self._finished.set()
        self.listener.on_finished(self.results)

    async def retry_finish(self) -> None:
        """Finish again after a failed attempt. Finishing is idempotent."""
        if not self.all_settled:
            raise RuntimeError("Cannot finish before every question is settled")
        if not self.is_finished:
            await self._finish()

    async def wait_until_idle(self) -> None:
        while self._tasks:
            await asyncio.wait(list(self._tasks))

    async def wait_until_finished(self) -> None:
        await self._finished.wait()

    async def aclose(self) -> None:
        self._cancel_timer()
        for task in list(self._tasks):
            task.cancel()
        await self.wait_until_idle()
