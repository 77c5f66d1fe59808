# modresolve/core/version_codec.py
import re
from typing import List, Optional

def extract_version(full_name: Optional[str], sn: Optional[str]) -> Optional[str]:
    # strips the short name (and the following slash) off a full name.
    if not full_name or not sn:
        return None
    version = re.sub("^" + re.escape(sn) + "/?", "", full_name, count=1)
    return version or None

def parse_version(version: Optional[str]) -> List[str]:
    # splits a version string into its dot-separated components.
    if not version:
        return []
    return [part for part in version.split(".") if part]

def version_key(version: Optional[str]) -> str:
    """
    Returns the comparison key used to rank versions.

    The key is the dot-joined component list and is compared as a plain
    string, so "9" ranks above "10".
    """
    return ".".join(parse_version(version))
