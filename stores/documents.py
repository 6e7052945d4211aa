"""
Field-level merge for store documents.

Updates follow "$set" semantics: every key is a field path (``name``,
``settings``, ``settings.defaultMarkup``, ``domainSettings.customDomain``)
and its value replaces whatever is stored at that path. Intermediate
objects are created when missing.
"""
import copy

# Fields clients may never write; status is changed by platform admins only
READ_ONLY_FIELDS = {'id', '_id', 'reseller', 'status', 'createdAt', 'updatedAt'}

# Top-level fields the store document knows about; anything else is dropped
DOCUMENT_FIELDS = {'name', 'description', 'domainSettings', 'settings'}


class MergeError(ValueError):
    """Raised when an update path cannot be applied to the document"""


def split_path(path):
    if not isinstance(path, str) or not path:
        raise MergeError('Field names must be non-empty strings')
    parts = path.split('.')
    if any(not part for part in parts):
        raise MergeError(f'Invalid field path "{path}"')
    return parts


def filter_updates(updates):
    """Drop read-only and unknown top-level fields from an update map"""
    allowed = {}
    ignored = []
    for path, value in updates.items():
        root = split_path(path)[0]
        if root in READ_ONLY_FIELDS or root not in DOCUMENT_FIELDS:
            ignored.append(path)
            continue
        allowed[path] = value
    return allowed, ignored


def set_path(document, parts, value):
    node = document
    for index, part in enumerate(parts[:-1]):
        child = node.get(part)
        if child is None:
            child = node[part] = {}
        elif not isinstance(child, dict):
            raise MergeError(f'Cannot set "{".".join(parts)}": "{".".join(parts[:index + 1])}" is not an object')
        node = child
    node[parts[-1]] = copy.deepcopy(value)


def merge_document(document, updates):
    """Return a copy of ``document`` with every update path applied in order"""
    merged = copy.deepcopy(document)
    for path, value in updates.items():
        set_path(merged, split_path(path), value)
    return merged
