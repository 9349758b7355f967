"""Swift compiler settings extracted from `swift package dump-package` output.

`describe` omits target settings, so they are read from the manifest dump and
merged into the described targets before caching.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from description.models import SwiftSetting

SINGLE_VALUE_KINDS = ("enableUpcomingFeature", "enableExperimentalFeature", "define")
MULTI_VALUE_KINDS = ("unsafeFlags",)


def _decode_setting(raw: Any) -> Optional[SwiftSetting]:
    if not isinstance(raw, dict) or raw.get("tool") != "swift":
        return None
    kind = raw.get("kind")
    if not isinstance(kind, dict) or not kind:
        return None
    name, payload = next(iter(kind.items()))
    value = payload.get("_0") if isinstance(payload, dict) else None
    if name in SINGLE_VALUE_KINDS and isinstance(value, str):
        return SwiftSetting(kind=name, values=(value,))
    if name in MULTI_VALUE_KINDS and isinstance(value, list):
        return SwiftSetting(kind=name, values=tuple(str(v) for v in value))
    return None


def decode_dump_settings(data: Any) -> Dict[str, Tuple[SwiftSetting, ...]]:
    """Map target name to its Swift settings; targets without any are omitted.

    Non-Swift tools and unrecognised setting kinds are ignored.
    """
    if not isinstance(data, dict):
        return {}
    targets = data.get("targets")
    if not isinstance(targets, list):
        return {}
    by_target: Dict[str, Tuple[SwiftSetting, ...]] = {}
    for target in targets:
        if not isinstance(target, dict) or not isinstance(target.get("name"), str):
            continue
        raw_settings = target.get("settings")
        if not isinstance(raw_settings, list):
            continue
        settings = tuple(s for s in (_decode_setting(raw) for raw in raw_settings) if s is not None)
        if settings:
            by_target[target["name"]] = settings
    return by_target
