from __future__ import annotations
import re
from typing import Tuple
from urllib.parse import urlparse

REPO_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9-]{2,62}$")
BRANCH_NAME_RE = re.compile(r"^\w[-\w]*$")
NAMESPACE_SCHEMES = ("s3", "gs", "https", "http", "local", "mem")
IMPORT_SCHEMES = ("s3", "gs", "https")

def validate_repo_name(name: str) -> Tuple[bool, str]:
    if not name:
        return False, "Repository name is required."
    if not REPO_NAME_RE.match(name):
        return False, (
            f"'{name}' is not a valid repository name: use 3-63 lowercase "
            "letters, digits or '-', starting with a letter or digit."
        )
    return True, ""

def validate_branch_name(name: str) -> Tuple[bool, str]:
    if not name:
        return False, "Branch name is required."
    if not BRANCH_NAME_RE.match(name):
        return False, f"'{name}' is not a valid branch name."
    return True, ""

def _validate_uri(uri: str, schemes: Tuple[str, ...], what: str) -> Tuple[bool, str]:
    if not uri:
        return False, f"{what} is required."
    parsed = urlparse(uri)
    if parsed.scheme not in schemes:
        allowed = ", ".join(f"{s}://" for s in schemes)
        return False, f"{what} must start with one of: {allowed}"
    if not (parsed.netloc or parsed.path.strip("/")):
        return False, f"{what} '{uri}' has no bucket or path."
    return True, ""

def validate_storage_namespace(uri: str) -> Tuple[bool, str]:
    return _validate_uri(uri, NAMESPACE_SCHEMES, "Storage namespace")

def validate_import_source(uri: str) -> Tuple[bool, str]:
    return _validate_uri(uri, IMPORT_SCHEMES, "Import source")

def default_namespace(prefix: str, repo_name: str) -> str:
    """'s3://bucket/' + 'my-repo' -> 's3://bucket/my-repo'. Empty if no prefix."""
    if not prefix:
        return ""
    return f"{prefix.rstrip('/')}/{repo_name}"
