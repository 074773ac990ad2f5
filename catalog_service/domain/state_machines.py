"""State machines for catalog entities.

Two independent axes describe a product:

- ``ProductStatus`` is the merchandising status. It is orthogonal to the
  record lifecycle and can be changed freely by an update.
- ``RecordState`` is the record lifecycle. Soft deletion is a one-way
  transition into a terminal state; nothing moves a record back.
"""

from enum import Enum

from catalog_service.domain.exceptions import InvalidInputError, InvalidStateTransitionError


# ============================================================================
# Product Status
# ============================================================================


class ProductStatus(str, Enum):
    """Merchandising status of a product.

    Any status may move to any other status.
    """

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DRAFT = "DRAFT"

    @classmethod
    def default(cls) -> "ProductStatus":
        """Status applied when a product is created without one."""
        return cls.ACTIVE

    @classmethod
    def parse(cls, value: "str | ProductStatus") -> "ProductStatus":
        """Parse a status string.

        Raises:
            InvalidInputError: If the value is not a known status.
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError(
                "status", "Status must be ACTIVE, INACTIVE, or DRAFT"
            ) from None


# ============================================================================
# Record Lifecycle
# ============================================================================


class RecordState(str, Enum):
    """Lifecycle state of a persisted product record.

    State diagram:
        LIVE ──── soft_delete ────► DELETED (terminal)
    """

    LIVE = "live"
    DELETED = "deleted"

    def can_transition_to(self, target: "RecordState") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _RECORD_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["RecordState"]:
        return list(_RECORD_TRANSITIONS.get(self, set()))

    def is_terminal(self) -> bool:
        return len(_RECORD_TRANSITIONS.get(self, set())) == 0

    def is_mutable(self) -> bool:
        """Whether the record may still be updated."""
        return self is RecordState.LIVE


_RECORD_TRANSITIONS: dict[RecordState, set[RecordState]] = {
    RecordState.LIVE: {RecordState.DELETED},
    RecordState.DELETED: set(),  # Terminal state
}


def validate_record_transition(
    entity_type: str,
    entity_id: str,
    current: RecordState,
    target: RecordState,
) -> None:
    """Validate a record lifecycle transition.

    Args:
        entity_type: Type of entity being transitioned.
        entity_id: ID of the entity.
        current: Current state.
        target: Requested state.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed.
    """
    if not current.can_transition_to(target):
        raise InvalidStateTransitionError(
            entity_type=entity_type,
            entity_id=entity_id,
            current_state=current.value,
            target_state=target.value,
            allowed_transitions=[s.value for s in current.allowed_transitions()],
        )
