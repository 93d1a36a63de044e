"""
Work order status machine.

Responsibility:
    Decides whether a work order may move from one status to another.  The
    shop currently allows every move (including re-entering the same
    status), so the default machine is fully permissive; tightening it is a
    matter of passing ``forbidden`` pairs, e.g. ``{(CANCELLED, OPEN)}``, from
    configuration.  Every accepted move is recorded by the work order engine
    as one status log row.

Architecture position:
    Kernel > Domain -- pure, no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from garage_kernel.domain.enums import WorkOrderStatus

Transition = tuple[WorkOrderStatus, WorkOrderStatus]

ALL_STATUSES: frozenset[WorkOrderStatus] = frozenset(WorkOrderStatus)

# Statuses that close the job; a move out of them reopens work.
TERMINAL_STATUSES: frozenset[WorkOrderStatus] = frozenset(
    {WorkOrderStatus.COMPLETED, WorkOrderStatus.CANCELLED}
)


@dataclass(frozen=True)
class StatusMachine:
    """
    Transition table over WorkOrderStatus.

    Contract:
        ``can_transition(a, b)`` is True unless ``(a, b)`` is listed in
        ``forbidden``.
    """

    forbidden: frozenset[Transition] = field(default_factory=frozenset)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> "StatusMachine":
        """Build a machine from ``[from, to]`` status value pairs."""
        return cls(
            forbidden=frozenset(
                (WorkOrderStatus(src), WorkOrderStatus(dst)) for src, dst in pairs
            )
        )

    def can_transition(
        self, current: WorkOrderStatus, target: WorkOrderStatus
    ) -> bool:
        return (current, target) not in self.forbidden

    def allowed_targets(self, current: WorkOrderStatus) -> frozenset[WorkOrderStatus]:
        return frozenset(
            target for target in ALL_STATUSES if self.can_transition(current, target)
        )

    def is_reopening(
        self, current: WorkOrderStatus, target: WorkOrderStatus
    ) -> bool:
        """True when the move takes a closed job back into active work."""
        return current in TERMINAL_STATUSES and target not in TERMINAL_STATUSES


PERMISSIVE = StatusMachine()
