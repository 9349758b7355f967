"""Shared fixtures: a stand-in for `swift package` and a package factory."""

import json
import os
import sys
import time

import pytest

FAKE_SWIFT = '''
import os
import sys
import time

mode = sys.argv[1] if len(sys.argv) > 1 else "describe"
with open(mode + ".calls", "a") as fh:
    fh.write("call\\n")
if os.path.exists(mode + ".sleep"):
    with open(mode + ".sleep") as fh:
        time.sleep(float(fh.read()))
if os.path.exists(mode + ".fail"):
    with open(mode + ".fail") as fh:
        sys.stderr.write(fh.read())
    sys.exit(1)
if not os.path.exists(mode + ".json"):
    sys.stderr.write("error: no manifest output for " + mode)
    sys.exit(1)
with open(mode + ".json") as fh:
    sys.stdout.write(fh.read())
'''


@pytest.fixture
def fake_swift(tmp_path):
    """Path of a script emulating `swift package describe` and `dump-package`.

    It runs in the package directory and prints `<mode>.json`, sleeps for the
    seconds in `<mode>.sleep`, or fails with the stderr text in `<mode>.fail`.
    Each invocation appends a line to `<mode>.calls`.
    """
    script = tmp_path / "fake_swift.py"
    script.write_text(FAKE_SWIFT, encoding="utf-8")
    return script


@pytest.fixture
def describe_command(fake_swift):
    return (sys.executable, str(fake_swift), "describe")


@pytest.fixture
def dump_command(fake_swift):
    return (sys.executable, str(fake_swift), "dump")


@pytest.fixture
def calls():
    """Count fake swift invocations recorded in a package directory."""

    def _calls(directory, mode="describe"):
        path = os.path.join(str(directory), mode + ".calls")
        if not os.path.exists(path):
            return 0
        with open(path, encoding="utf-8") as fh:
            return len(fh.read().splitlines())

    return _calls


def package_json(name, path, products=None, targets=None, dependencies=None, platforms=None):
    """Minimal `swift package describe --type json` document."""
    products = products if products is not None else [(name, [name])]
    if targets is None:
        targets = [{"name": t, "type": "library"} for _, ts in products for t in ts]
    data = {
        "name": name,
        "manifest_display_name": name,
        "path": str(path),
        "tools_version": "5.9",
        "products": [
            {"name": p, "targets": list(ts), "type": {"library": ["automatic"]}} for p, ts in products
        ],
        "targets": [
            {
                "name": t["name"],
                "type": t.get("type", "library"),
                "path": t.get("path", "Sources/" + t["name"]),
                "sources": t.get("sources", [t["name"] + ".swift"]),
                "target_dependencies": t.get("target_dependencies", []),
                "product_dependencies": t.get("product_dependencies", []),
                "c99name": t["name"],
                "module_type": "SwiftTarget",
            }
            for t in targets
        ],
        "dependencies": dependencies or [],
    }
    if platforms is not None:
        data["platforms"] = [{"name": n, "version": v} for n, v in platforms]
    return data


@pytest.fixture
def make_package():
    """Create a package directory with a manifest and the fake describe output.

    The manifest mtime is moved into the past so caches and outputs written
    during a test are always strictly newer.
    """

    def _make(directory, name, **kwargs):
        directory.mkdir(parents=True, exist_ok=True)
        manifest = directory / "Package.swift"
        manifest.write_text("// swift-tools-version:5.9\n", encoding="utf-8")
        data = package_json(name, directory, **kwargs)
        (directory / "describe.json").write_text(json.dumps(data), encoding="utf-8")
        past = time.time() - 1000
        os.utime(manifest, (past, past))
        return manifest

    return _make
