from __future__ import annotations

from typing import Iterable

from appforge.schemas.messages import ArtifactBundle, Result


def aggregate_artifacts(results: Iterable[Result]) -> ArtifactBundle:
    """Concatenate every result's artifacts in the order the results are given.

    Paths and names are not de-duplicated; two workers writing the same file
    both show up in the bundle.
    """
    bundle = ArtifactBundle()
    for result in results:
        artifacts = result.artifacts
        if artifacts is None:
            continue
        bundle.files.extend(_as_list(artifacts.files, "files"))
        bundle.schemas.extend(_as_list(artifacts.schemas, "schemas"))
        bundle.docs.extend(_as_list(artifacts.docs, "docs"))
    return bundle


def _as_list(value, kind: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"artifacts.{kind} must be a list, got {type(value).__name__}")
    return value
