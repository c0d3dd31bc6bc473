"""Retry helpers built on tenacity."""

from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_random

from storefront.errors import ConcurrencyConflictError

MAX_CONFLICT_ATTEMPTS = 3


def conflict_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(MAX_CONFLICT_ATTEMPTS),
        wait=wait_random(min=0, max=0.05),
        retry=retry_if_exception_type(ExpectedVersionError),
    )


@conflict_retry()
def _process(command):
    return current_domain.process(command, asynchronous=False)


def process_with_retry(command):
    """Process a command, re-running it on a fresh aggregate after a version conflict.

    Handlers reload the aggregate on every attempt, so a retried mutation is
    applied on top of whatever the concurrent writer persisted.
    """
    try:
        return _process(command)
    except ExpectedVersionError:
        raise ConcurrencyConflictError() from None
