"""Names for the states of a special resource."""

STATE_PREFIX = "specialresource.openshift.io/state-"


def _base(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def generate_name(file, sr):
    """Return the state name built from the file's four-character sequence prefix."""
    base = _base(file.name)
    if len(base) < 4:
        raise ValueError(f"file name {file.name!r} has no four-character sequence")
    return f"{STATE_PREFIX}{sr}-{base[:4]}"