"""
Package which contains the records the provisioner renders boot artifacts from.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

from typing import Any, Dict


def apply_record(item: Any, dictionary: Dict[str, Any], fields: Dict[str, str]) -> None:
    """
    Set the attributes of an item from a record dictionary. Keys may be given in the record format (``Name``) or as the
    attribute name (``name``).

    :param item: The item to modify.
    :param dictionary: The dictionary with values.
    :param fields: Mapping of record keys to attribute names.
    :raises KeyError: In case a key is not known to the item.
    """
    lookup = dict(fields)
    lookup.update({attribute: attribute for attribute in fields.values()})
    for key, value in dictionary.items():
        if key not in lookup:
            raise KeyError(f'{item.TYPE_NAME} has no attribute "{key}"')
        setattr(item, lookup[key], value)
