"""
Archive-relative path resolution for hrefs found inside KML documents.

Resolution is purely textual: no filesystem semantics, case-sensitive,
forward-slash separated.
"""

PARENT_SEGMENT = "../"


def resolve_path(parent_path: str, href: str) -> str:
    """
    Resolve an href against the directory of the document that referenced it.

    ``parent_path`` is expected to be empty or to end with ``/``. Leading
    ``../`` segments climb out of ``parent_path``; climbing above the archive
    root is not an error and leaves an empty prefix, so
    ``resolve_path("a/", "../../x.kml")`` returns ``"/x.kml"`` (such a path
    simply never matches an archive entry).

    Args:
        parent_path: Directory of the referencing document ("" for the root)
        href: Link target as written in the document

    Returns:
        Archive-relative path of the link target
    """
    if not href.startswith(PARENT_SEGMENT):
        return parent_path + href

    levels_up = 0
    remainder = href
    while remainder.startswith(PARENT_SEGMENT):
        levels_up += 1
        remainder = remainder[len(PARENT_SEGMENT):]

    parent_parts = [part for part in parent_path.split("/") if part]
    kept = parent_parts[:-levels_up]
    return "/".join(kept) + "/" + remainder


def parent_directory(path: str) -> str:
    """
    Directory portion of an archive path, up to and including the last ``/``.

    Returns "" for paths at the archive root.
    """
    index = path.rfind("/")
    return path[: index + 1] if index >= 0 else ""
