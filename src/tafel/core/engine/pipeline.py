"""Optimistic mutations: apply locally first, write remotely, roll back on failure.

Every change to the board store goes through :class:`MutationPipeline`. A
mutation is planned and applied synchronously, so the board reflects it
immediately; the remote write then runs as a task of its own. While that
write is pending, every entity it touches is marked as updating and further
mutations touching them are rejected rather than queued.
"""

import asyncio
import dataclasses
import enum
import logging
from typing import Any, Callable, FrozenSet, List, Optional

from .activity import ActivityRecorder, records_for
from .changes import ChangeSet, diff
from .exceptions import InvariantViolation, ValidationError
from .moves import normalize, verify_board
from .retry import with_retry

logger = logging.getLogger(__name__)


class MutationStatus(enum.Enum):
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    REJECTED = "rejected"
    INVALID = "invalid"
    NOOP = "noop"
    ABORTED = "aborted"


@dataclasses.dataclass(frozen=True)
class Mutation:
    """A pure ``plan(snapshot) -> snapshot`` plus what to call it.

    ``entity_ids`` are the entities the caller acts on; they are gated even
    when the plan leaves them unchanged.
    """

    plan: Callable
    label: str = ""
    automated: bool = False
    entity_ids: FrozenSet[str] = frozenset()


@dataclasses.dataclass
class MutationOutcome:
    status: MutationStatus
    mutation: Optional[Mutation] = None
    changes: Optional[ChangeSet] = None
    error: Optional[Exception] = None
    followups: List[Any] = dataclasses.field(default_factory=list)

    @property
    def ok(self):
        return self.status in (MutationStatus.COMMITTED, MutationStatus.NOOP)

    @property
    def label(self):
        return self.mutation.label if self.mutation else ""

    def as_dict(self):
        return {
            "status": self.status.value,
            "label": self.label,
            "automated": bool(self.mutation and self.mutation.automated),
            "error": str(self.error) if self.error else None,
            "followups": [followup.as_dict() for followup in self.followups],
        }


class PendingMutation:
    """Handle on a submitted mutation; await it (or :meth:`settle`) for the outcome."""

    def __init__(self, outcome=None, task=None):
        self._outcome = outcome
        self._task = task

    @property
    def settled(self):
        return self._task is None or self._task.done()

    async def settle(self):
        if self._task is None:
            return self._outcome
        return await self._task

    def __await__(self):
        return self.settle().__await__()


class MutationPipeline:
    def __init__(self, store, remote, recorder=None, rules=(), retry_options=None):
        self.store = store
        self.remote = remote
        self.recorder = recorder or ActivityRecorder()
        self.rules = list(rules)
        self.retry_options = dict(retry_options or {})
        self._updating = set()
        self._tasks = set()

    def add_rule(self, rule):
        self.rules.append(rule)

    def is_updating(self, entity_id=None):
        """Whether ``entity_id`` (or, without an id, anything) has a write pending."""
        if entity_id is None:
            return bool(self._updating)
        return entity_id in self._updating

    async def apply(self, mutation):
        return await self.submit(mutation).settle()

    def submit(self, mutation):
        """Plan and apply ``mutation`` locally, then start its remote write.

        Must be called from a running event loop. Everything up to starting
        the write happens synchronously.
        """
        before = self.store.snapshot()
        try:
            after = mutation.plan(before)
            verify_board(after)
        except ValidationError as error:
            logger.info("Rejected invalid mutation %s: %s", mutation.label, error)
            return PendingMutation(MutationOutcome(MutationStatus.INVALID, mutation, error=error))
        except InvariantViolation as error:
            logger.error("Mutation %s would corrupt the board: %s", mutation.label, error)
            return PendingMutation(MutationOutcome(MutationStatus.ABORTED, mutation, error=error))

        changes = diff(before, after)
        if not changes:
            return PendingMutation(MutationOutcome(MutationStatus.NOOP, mutation, changes))

        touched = changes.entity_ids | set(mutation.entity_ids)
        busy = touched & self._updating
        if busy:
            logger.info(
                "Rejected mutation %s, still updating %s", mutation.label, sorted(busy)
            )
            return PendingMutation(MutationOutcome(MutationStatus.REJECTED, mutation, changes))

        self.store.replace(after)
        self._updating |= touched
        task = asyncio.get_running_loop().create_task(
            self._settle(mutation, before, after, changes, touched)
        )
        self._track(task)
        return PendingMutation(task=task)

    async def drain(self):
        """Wait for pending writes and activity deliveries to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _settle(self, mutation, before, after, changes, touched):
        try:
            await with_retry(lambda: self.remote.commit(changes), **self.retry_options)
        except Exception as error:
            self._revert(before, touched)
            logger.error("Mutation %s failed, rolled back: %s", mutation.label, error)
            return MutationOutcome(MutationStatus.ROLLED_BACK, mutation, changes, error=error)
        finally:
            self._updating -= touched

        outcome = MutationOutcome(MutationStatus.COMMITTED, mutation, changes)
        logger.debug("Committed mutation %s", mutation.label)
        self._deliver(records_for(before, after, changes, automated=mutation.automated))
        for rule in self.rules:
            for followup in rule.after_commit(before, after, changes):
                outcome.followups.append(await self.apply(followup))
        return outcome

    def _revert(self, before, touched):
        """Put every touched entity back the way it was before the mutation."""
        current = self.store.snapshot()
        columns = [c for c in current.columns if c.id not in touched]
        columns += [c for c in before.columns if c.id in touched]
        items = [i for i in current.items if i.id not in touched]
        items += [i for i in before.items if i.id in touched]
        reverted = current.replace(columns=columns, items=items)
        try:
            verify_board(reverted)
        except InvariantViolation as error:
            logger.warning("Renumbering board after rollback: %s", error)
            reverted = normalize(reverted)
        self.store.replace(reverted)

    def _deliver(self, records):
        if records:
            self._track(asyncio.get_running_loop().create_task(self._record(records)))

    async def _record(self, records):
        for record in records:
            try:
                await self.recorder.record(record)
            except Exception:
                logger.exception("Could not record activity %s", record)

    def _track(self, task):
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
