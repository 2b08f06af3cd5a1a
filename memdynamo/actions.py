"""Per-attribute update actions: PUT, ADD and DELETE"""
import typing as ty

from .exceptions import ArgumentError
from .types import ACTIONS, AttributeUpdates, Item, UpdateAction
from .values import add_values, normalize_value

UpdateActions = ty.Union[ty.Iterable[UpdateAction], AttributeUpdates]


def as_update_actions(actions: UpdateActions) -> ty.List[UpdateAction]:
    """Accepts UpdateActions or a boto3-style AttributeUpdates mapping."""
    if isinstance(actions, ty.Mapping):
        converted = [
            UpdateAction(name, update.get("Action", "PUT"), update.get("Value"))
            for name, update in actions.items()
        ]
    else:
        converted = [UpdateAction(*action) for action in actions]
    for action in converted:
        if action.action not in ACTIONS:
            raise ArgumentError(
                f"Unknown action {action.action!r} for attribute {action.attribute_name}; "
                f"expected one of {', '.join(ACTIONS)}"
            )
    return converted


def apply_update_actions(item: Item, actions: ty.Iterable[UpdateAction]) -> Item:
    """Mutates and returns the given item, so pass a copy.

    ADD on an absent attribute behaves like PUT; DELETE of an absent
    attribute does nothing.
    """
    for attribute_name, action, value in actions:
        if action == "DELETE":
            item.pop(attribute_name, None)
        elif action == "ADD" and attribute_name in item:
            item[attribute_name] = add_values(item[attribute_name], normalize_value(value))
        else:
            item[attribute_name] = normalize_value(value)
    return item


def to_attribute_updates(actions: ty.Iterable[UpdateAction]) -> AttributeUpdates:
    updates: ty.Dict[str, ty.Dict[str, ty.Any]] = dict()
    for name, kind, value in actions:
        updates[name] = dict(Action=kind) if value is None else dict(Action=kind, Value=value)
    return updates  # type: ignore
