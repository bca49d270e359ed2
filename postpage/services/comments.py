"""Comment form state machine and delivery to the moderation endpoint.

A form moves EDITING -> SUBMITTING -> SUBMITTED on success, or back to
EDITING when validation or delivery fails. SUBMITTED is terminal. A form that
is already SUBMITTING or SUBMITTED cannot be submitted again.
"""
from __future__ import annotations

import enum
import hashlib
from contextlib import contextmanager
from typing import Iterator

import requests
import structlog
from flask_caching import Cache
from pydantic import ValidationError

from postpage.forms.comments import CommentForm
from postpage.schemas.comments import CommentSubmission
from postpage.utils.http_client import HTTPClient

log = structlog.get_logger(__name__)


class FormState(enum.Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


TRANSITIONS: dict[FormState, frozenset[FormState]] = {
    FormState.EDITING: frozenset({FormState.SUBMITTING}),
    FormState.SUBMITTING: frozenset({FormState.SUBMITTED, FormState.EDITING}),
    FormState.SUBMITTED: frozenset(),
}


class InvalidTransition(RuntimeError):
    pass


class ModerationError(RuntimeError):
    """The moderation endpoint was unreachable or rejected the comment."""


class SubmissionInFlight(RuntimeError):
    pass


class ModerationClient:
    def __init__(self, endpoint: str, http: HTTPClient | None = None, timeout: float = 10.0):
        self.endpoint = endpoint
        self.http = http or HTTPClient(timeout=timeout)

    def send(self, submission: CommentSubmission) -> None:
        """POST the comment. Only the response status is consumed.

        Raises:
            ModerationError: On transport failure or a non-success status.
        """
        try:
            resp = self.http.post(self.endpoint, json=submission.to_payload())
        except (requests.RequestException, ValueError) as e:
            raise ModerationError(str(e)) from e
        if not resp.ok:
            raise ModerationError(f"moderation endpoint returned {resp.status_code}")


class CommentFormController:
    def __init__(self, moderation: ModerationClient, state: FormState = FormState.EDITING):
        self.moderation = moderation
        self.state = state

    @property
    def submitted(self) -> bool:
        return self.state is FormState.SUBMITTED

    def _transition(self, target: FormState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.state.value} -> {target.value}")
        self.state = target

    def submit(self, form: CommentForm) -> FormState:
        if self.state is not FormState.EDITING:
            raise InvalidTransition(f"cannot submit while {self.state.value}")

        if not form.validate():
            return self.state

        try:
            submission = CommentSubmission.model_validate({
                "_id": form.post_id.data,
                "name": form.name.data,
                "email": form.email.data,
                "comment": form.comment.data,
            })
        except ValidationError as e:
            log.warning("comment_payload_invalid", errors=e.error_count())
            return self.state

        self._transition(FormState.SUBMITTING)
        try:
            self.moderation.send(submission)
        except ModerationError as e:
            log.warning("comment_submission_failed", post_id=submission.post_id, error=str(e))
            self._transition(FormState.EDITING)
            return self.state

        self._transition(FormState.SUBMITTED)
        log.info("comment_submitted", post_id=submission.post_id)
        return self.state


def inflight_key(post_id: str, email: str) -> str:
    digest = hashlib.sha256(f"{post_id}:{(email or '').strip().lower()}".encode()).hexdigest()
    return f"comment-inflight:{digest}"


@contextmanager
def inflight_guard(cache: Cache, post_id: str, email: str, timeout: int) -> Iterator[None]:
    """Reject a second submission for the same post and email while one is in flight.

    Raises:
        SubmissionInFlight: If another request holds the guard.
    """
    key = inflight_key(post_id, email)
    if not cache.add(key, 1, timeout=max(1, int(timeout))):
        raise SubmissionInFlight(post_id)
    try:
        yield
    finally:
        cache.delete(key)
