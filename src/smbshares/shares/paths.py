import os


class PathError(ValueError):
    pass


def _with_sep(path: str) -> str:
    return path.rstrip(os.sep) + os.sep


def is_within_root(path: str, root: str) -> bool:
    """True if path lies strictly below root (string comparison, no filesystem access)."""
    return path.startswith(_with_sep(root))


def resolve_share_path(raw_path: str, permitted_root: str) -> str:
    """
    Resolves a user supplied share path to its canonical form.

    The raw path must start with the permitted root. It is then canonicalized,
    following every symlink hop and relative segment, and the result is checked
    against the root again: a link inside the root that points outside of it is
    rejected here even though the raw string looked fine.

    Args:
        raw_path: Path as entered by the user.
        permitted_root: Directory the share must live under, e.g. /mnt.

    Returns:
        The canonical absolute path.

    Raises:
        PathError: if the path is outside the root, missing, not a directory
            or not writable.
    """
    if not raw_path or not is_within_root(raw_path, permitted_root):
        raise PathError(f"Path must start with {_with_sep(permitted_root)}")

    try:
        canonical = os.path.realpath(raw_path, strict=True)
    except OSError:
        # Missing targets, dangling links and link loops all end up here
        raise PathError(f"Path does not exist: {raw_path}")

    canonical_root = os.path.realpath(permitted_root)
    if not is_within_root(canonical, canonical_root):
        raise PathError(f"Invalid path: must be under {_with_sep(permitted_root)}")
    if not os.path.isdir(canonical):
        raise PathError(f"Path is not a directory: {raw_path}")
    if not os.access(canonical, os.W_OK):
        raise PathError(f"Path is not writable: {raw_path}")

    return canonical
