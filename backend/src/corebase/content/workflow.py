"""Content workflow state machine.

Entries move draft -> pending_approval -> published, and can be unpublished
back to draft. Whether a standard author may publish directly depends on the
``contentApproval`` setting; with approval on, a standard author's publish
request is downgraded to pending_approval and an administrator countersigns.

    resolve_transition(State.DRAFT, "published", privileged=False,
                       content_approval=True)   # State.PENDING_APPROVAL
"""

from enum import Enum

from corebase.errors import Forbidden, ValidationFailed


class State(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    PUBLISHED = "published"


INITIAL_STATE = State.DRAFT


def parse_state(value: object) -> State:
    """Parse a wire value into a State.

    Raises:
        ValidationFailed: If the value is not a recognised state
    """
    try:
        return State(value)
    except ValueError:
        allowed = ", ".join(s.value for s in State)
        raise ValidationFailed(
            f"Invalid state '{value}'. Must be one of: {allowed}", field="state"
        ) from None


def resolve_transition(
    current: State | str,
    requested: State | str,
    privileged: bool,
    content_approval: bool,
) -> State:
    """Return the state an entry actually ends up in.

    Args:
        current: The entry's stored state
        requested: The state the caller asked for
        privileged: Whether the caller may approve publication
        content_approval: Whether the approval gate is on

    Raises:
        ValidationFailed: Unknown state, or a transition the machine does not allow
        Forbidden: A standard caller approving a pending entry under the gate
    """
    current = parse_state(current)
    requested = parse_state(requested)

    if requested == current:
        return current

    # Unpublishing or withdrawing is always allowed
    if requested == State.DRAFT:
        return State.DRAFT

    if requested == State.PUBLISHED:
        if privileged or not content_approval:
            return State.PUBLISHED
        if current == State.DRAFT:
            return State.PENDING_APPROVAL
        raise Forbidden(
            "Publishing requires approval by an administrator", field="state"
        )

    # requested == PENDING_APPROVAL
    if current == State.DRAFT:
        return State.PENDING_APPROVAL
    raise ValidationFailed(
        f"Cannot move from '{current.value}' to '{requested.value}'", field="state"
    )
