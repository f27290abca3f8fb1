"""Owner controls and governance-gated reserve updates."""

from .auth import Role, require_role, require_unpaused
from .collaborators import GovernanceCollaborator, check_approval
from .events import Event, EventType
from .exceptions import GovernanceNotApprovedError, InvalidThresholdError
from .state import Transaction
from .validation import EnergyValidator, validate_principal


def set_paused(txn: Transaction, paused: bool, caller: str) -> Event:
    """Pause or unpause every non-admin transition. Owner only."""
    require_role(txn.settings, Role.OWNER, caller)
    txn.update_settings(paused=paused)
    return Event(
        type=EventType.CONTRACT_PAUSED if paused else EventType.CONTRACT_UNPAUSED,
        caller=caller,
    )


def set_collaborator(txn: Transaction, role: Role, identity: str, caller: str) -> Event:
    """Rotate the identity configured for a collaborator role. Owner only."""
    if role is Role.OWNER:
        raise ValueError("Ownership is not transferable through collaborator rotation")

    require_role(txn.settings, Role.OWNER, caller)
    validate_principal(identity)

    field_name = f"{role.value}_collaborator"
    previous = getattr(txn.settings, field_name)
    txn.update_settings(**{field_name: identity})
    return Event(
        type=EventType.COLLABORATOR_CHANGED,
        caller=caller,
        details={"role": role.value, "previous": previous, "current": identity},
    )


def update_reserve_threshold(
    txn: Transaction,
    governance: GovernanceCollaborator,
    new_threshold: int,
    proposal_id: int,
    caller: str
) -> Event:
    """Replace the reserve threshold once governance approves `proposal_id`."""
    settings = txn.settings
    require_unpaused(settings)
    EnergyValidator.validate_energy(new_threshold)
    EnergyValidator.validate_identifier(proposal_id)

    if not check_approval(governance, proposal_id):
        raise GovernanceNotApprovedError(f"Proposal {proposal_id} is not approved")

    if new_threshold <= 0:
        raise InvalidThresholdError(f"Reserve threshold must be positive, got {new_threshold}")

    txn.update_settings(reserve_threshold=new_threshold)
    return Event(
        type=EventType.RESERVE_THRESHOLD_UPDATED,
        caller=caller,
        details={
            "previous": settings.reserve_threshold,
            "current": new_threshold,
            "proposal_id": proposal_id,
        },
    )
