from sqlalchemy.orm import class_mapper


def sqlalchemy_to_dict(obj):
    """Convert a SQLAlchemy object to a JSON-safe dictionary for audit snapshots."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        value = getattr(obj, c.key)
        # Convert date/datetime objects to ISO format strings
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        # Keep Decimal exact by storing its string form
        elif hasattr(value, 'normalize') and hasattr(value, 'from_float'):
            value = str(value)
        # Convert enum types to strings
        elif hasattr(value, 'name') and hasattr(value, 'value'):
            value = value.name
        result[c.key] = value
    return result


__all__ = ['sqlalchemy_to_dict']
