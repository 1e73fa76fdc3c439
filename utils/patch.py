from core.errors import NoFieldsToUpdate


def apply_patch(entity, patch: dict, fields) -> dict:
    """Copy the recognised keys of ``patch`` onto ``entity``.

    Keys absent from ``patch`` are left alone; a key present with an empty
    value still overwrites. Returns ``{field: (old, new)}`` for every field
    that was written.

    Raises:
        NoFieldsToUpdate: ``patch`` holds none of ``fields``.
    """
    recognised = [field for field in fields if field in patch]
    if not recognised:
        raise NoFieldsToUpdate()
    changes = {}
    for field in recognised:
        changes[field] = (getattr(entity, field), patch[field])
        setattr(entity, field, patch[field])
    return changes
