"""
All the functions to manipulate the object finalization and deletion.

Finalizers are used to block the actual deletion until the finalizers
are removed, meaning that the operator has done all its duties
to "release" the object (e.g. cleanups in the delete-actions).

Other controllers can keep their own finalizers on the same objects
at the same time. So, only our own finalizer is added or removed,
and the others are kept intact, in their original order.
"""
from collections.abc import Mapping, Sequence
from typing import Any


def is_deletion_ongoing(
        body: Mapping[str, Any],
) -> bool:
    return body.get('metadata', {}).get('deletionTimestamp', None) is not None


def is_deletion_blocked(
        body: Mapping[str, Any],
        finalizer: str,
) -> bool:
    finalizers = body.get('metadata', {}).get('finalizers') or []
    return finalizer in finalizers


def with_finalizer(finalizers: Sequence[str], finalizer: str) -> list[str]:
    """ A new list of finalizers with ours appended (unless already there). """
    return list(finalizers) if finalizer in finalizers else [*finalizers, finalizer]


def without_finalizer(finalizers: Sequence[str], finalizer: str) -> list[str]:
    """ A new list of finalizers with all entries of ours removed. """
    return [f for f in finalizers if f != finalizer]
