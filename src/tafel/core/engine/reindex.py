"""Contiguous position bookkeeping for ordered containers.

Every function takes entities in display order (a column's items, or a
project's columns) and returns a new list in which each entity's ``position``
equals its index. Inputs are never modified.
"""

from .exceptions import InvariantViolation


def clamp_index(index, length):
    """Clamp an insertion index to ``[0, length]``."""
    return max(0, min(index, length))


def renumber(entities):
    return [
        entity if entity.position == index else entity.replace(position=index)
        for index, entity in enumerate(entities)
    ]


def insert(entities, entity, index=None):
    """Insert ``entity`` before ``index``, or append when no index is given."""
    result = list(entities)
    if index is None:
        index = len(result)
    result.insert(clamp_index(index, len(result)), entity)
    return renumber(result)


def remove(entities, index):
    result = list(entities)
    if not 0 <= index < len(result):
        raise IndexError(f"No entity at index {index} (container holds {len(result)}).")
    del result[index]
    return renumber(result)


def move_within(entities, from_index, to_index):
    """Move one entity inside its container: remove it, then insert it at ``to_index``.

    ``to_index`` is the entity's index in the resulting list, so moving from
    i to j and back from j to i restores the original order.
    """
    result = list(entities)
    entity = result.pop(from_index)
    result.insert(clamp_index(to_index, len(result)), entity)
    return renumber(result)


def move_between(source, target, from_index, to_index=None, **changes):
    """Move the entity at ``from_index`` of ``source`` into ``target``.

    The moved entity is appended to ``target`` unless ``to_index`` is given,
    and ``changes`` (such as its new ``column_id``) are applied to it. Returns
    the renumbered ``(source, target)`` pair.
    """
    remaining = list(source)
    entity = remaining.pop(from_index)
    if changes:
        entity = entity.replace(**changes)
    return renumber(remaining), insert(target, entity, to_index)


def tail_position(entities):
    """The position an entity appended to this container would take."""
    if not entities:
        return 0
    return max(entity.position for entity in entities) + 1


def verify_positions(entities, container=None):
    positions = sorted(entity.position for entity in entities)
    if positions != list(range(len(positions))):
        where = f" in {container}" if container else ""
        raise InvariantViolation(
            f"Positions{where} are not contiguous from 0: {positions}"
        )
