"""
Target Resolver.
Turns a target selection into the concrete list of people or structures
that receive deadlines. Enumerating "everyone in the organization" is done by
the storage layer; this module only shapes and checks the result.
"""

import logging
from typing import Callable, Iterable, List

from src.recurrence.models import Target, TargetSpec, TargetSpecType, TargetType
from src.utils.errors import EmptyTargetError, ValidationError

logger = logging.getLogger(__name__)

IdLookup = Callable[[], Iterable[str]]


def resolve_targets(
    spec: TargetSpec,
    list_people: IdLookup,
    list_structures: IdLookup
) -> List[Target]:
    """
    Resolve a target selection into concrete targets.

    Args:
        spec: Explicit target or ALL_PEOPLE / ALL_STRUCTURES
        list_people: Returns the ids of every person in scope
        list_structures: Returns the ids of every structure in scope

    Returns:
        Non-empty list of targets

    Raises:
        ValidationError: Explicit target type without an id
        EmptyTargetError: Nothing to generate deadlines for
    """
    spec_type = TargetSpecType(spec.type)

    if spec_type in (TargetSpecType.PERSON, TargetSpecType.STRUCTURE):
        if not spec.target_id:
            raise ValidationError(f"targetId is required when targetType is {spec_type.value}")
        targets = [Target(TargetType(spec_type.value), spec.target_id)]
    elif spec_type == TargetSpecType.ALL_PEOPLE:
        targets = [Target(TargetType.PERSON, person_id) for person_id in list_people()]
    else:
        targets = [Target(TargetType.STRUCTURE, structure_id) for structure_id in list_structures()]

    if not targets:
        raise EmptyTargetError(f"No targets found for {spec_type.value}")

    logger.debug(f"Resolved {len(targets)} targets for {spec_type.value}")
    return targets
