"""
krb5.conf profile reader.

The native Kerberos configuration facility of the host: the MIT-style
profile named by KRB5_CONFIG (colon separated list of files) or found at
the platform default locations. Only the relations needed to answer
"which KDCs serve this realm" are interpreted:

    [libdefaults]
        dns_lookup_kdc = true

    [realms]
        EXAMPLE.COM = {
            kdc = kdc1.example.com:88
            kdc = kdc2.example.com
        }
"""

from __future__ import annotations

import os
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import attrs
import structlog

from kerbauth.transport import dns_locator

logger = structlog.get_logger()

DEFAULT_CONFIG_PATHS = (
    "/etc/krb5.conf",
    "/usr/local/etc/krb5.conf",
)

# Section -> tag -> values. Subsection relations ("EXAMPLE.COM = { ... }")
# are flattened into "<tag>.<subtag>" keys.
Profile = Dict[str, Dict[str, List[str]]]

KdcLocator = Callable[[str], List[Tuple[str, int]]]


def config_paths() -> List[str]:
    """Profile files to read, in priority order."""
    env = os.environ.get("KRB5_CONFIG")
    if env:
        return [p for p in env.split(os.pathsep) if p]
    return list(DEFAULT_CONFIG_PATHS)


def parse_profile(text: str, profile: Optional[Profile] = None) -> Profile:
    """
    Parse krb5.conf text into a flattened profile.

    Relations already present in profile win over later files, matching
    the first-file-wins rule of the MIT library.
    """
    profile = profile if profile is not None else {}
    seen: Dict[Tuple[str, str], bool] = {}
    section: Optional[str] = None
    stack: List[str] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith(";"):
            continue
        if line.startswith("include"):
            logger.debug("krb5_conf_include_ignored", line=line)
            continue

        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1].strip()
            stack = []
            profile.setdefault(section, {})
            continue

        if section is None:
            continue

        if line == "}":
            if stack:
                stack.pop()
            continue

        tag, sep, value = line.partition("=")
        if not sep:
            continue
        tag = tag.strip()
        value = value.strip()

        if value == "{":
            stack.append(tag)
            continue

        key = ".".join(stack + [tag])
        # "foo*" marks a final relation in MIT syntax
        key = key.rstrip("*")
        relations = profile[section]
        if key in relations and (section, key) not in seen:
            continue
        seen[(section, key)] = True
        relations.setdefault(key, []).append(value)

    return profile


@attrs.define
class Krb5Config:
    """
    Loaded Kerberos profile.

    Example:
        config = Krb5Config.load()
        if config is not None:
            kdcs = config.get_kdc_list("EXAMPLE.COM")
    """

    profile: Profile = attrs.Factory(dict)
    paths: Sequence[str] = ()
    kdc_locator: KdcLocator = attrs.Factory(lambda: dns_locator.discover_kdc_servers)

    @classmethod
    def load(
        cls,
        paths: Optional[Sequence[str]] = None,
        kdc_locator: Optional[KdcLocator] = None,
    ) -> Optional["Krb5Config"]:
        """
        Load the profile.

        Returns:
            Krb5Config, or None when no profile file is readable (no
            native Kerberos configuration on this host)
        """
        profile: Profile = {}
        loaded: List[str] = []
        for path in paths if paths is not None else config_paths():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    parse_profile(f.read(), profile)
            except OSError as e:
                logger.debug("krb5_conf_unreadable", path=path, error=str(e))
                continue
            loaded.append(path)

        if not loaded:
            return None

        logger.debug("krb5_conf_loaded", paths=loaded)
        config = cls(profile=profile, paths=tuple(loaded))
        if kdc_locator is not None:
            config.kdc_locator = kdc_locator
        return config

    def get_values(self, section: str, key: str) -> List[str]:
        return list(self.profile.get(section, {}).get(key, []))

    def get_bool(self, section: str, key: str, default: bool) -> bool:
        values = self.get_values(section, key)
        if not values:
            return default
        return values[0].strip().lower() in ("true", "yes", "on", "1")

    @property
    def realms(self) -> List[str]:
        """Realms with kdc relations in [realms]."""
        names = []
        for key in self.profile.get("realms", {}):
            realm = key[: -len(".kdc")] if key.endswith(".kdc") else None
            if realm and realm not in names:
                names.append(realm)
        return names

    def get_kdc_list(self, realm: str) -> List[str]:
        """
        KDCs serving realm.

        Configured kdc relations are used first (realm matched without
        regard to case). Otherwise DNS SRV discovery is used when
        dns_lookup_kdc allows it, as the native library would.
        """
        wanted = realm.upper()
        for name in self.realms:
            if name.upper() == wanted:
                kdcs = self.get_values("realms", f"{name}.kdc")
                if kdcs:
                    return kdcs

        if not self.get_bool("libdefaults", "dns_lookup_kdc", default=True):
            return []

        return [f"{host}:{port}" for host, port in self.kdc_locator(realm)]
