#!/usr/bin/env python3
"""Version Conductor - Single Source of Truth for version strings.

Reads the VERSION file and synchronizes version strings across:
- pyproject.toml ([project] version)
- liblinker/config.py (__version__ constant)
"""

import re
from pathlib import Path


def read_version(project_root: Path) -> str:
    """Read version from VERSION file with robust encoding handling.

    Handles:
    - UTF-8 with BOM (utf-8-sig)
    - UTF-16 encoding artifacts
    - Hidden whitespace, newlines, and null bytes

    Returns:
        Validated semantic version string (X.Y.Z)

    Raises:
        ValueError: If version format is invalid
    """
    version_file = project_root / "VERSION"

    try:
        raw_version = version_file.read_text(encoding='utf-8-sig')
    except UnicodeDecodeError:
        try:
            raw_version = version_file.read_bytes().decode('utf-16')
        except UnicodeDecodeError:
            raw_version = version_file.read_text(encoding='latin-1')

    version = raw_version.strip().strip('\x00').strip()

    if not re.match(r'^\d+\.\d+\.\d+$', version):
        raise ValueError(
            f"Invalid version format detected: '{version}' (raw: {raw_version!r})\n"
            f"Expected semantic version format: X.Y.Z (e.g., 1.2.0)"
        )

    return version


def update_pyproject(version: str, project_root: Path) -> None:
    """Update the [project] version in pyproject.toml."""
    pyproject_path = project_root / "pyproject.toml"
    content = pyproject_path.read_text(encoding="utf-8")

    content = re.sub(
        r'^version = "[\d.]+"',
        f'version = "{version}"',
        content,
        count=1,
        flags=re.MULTILINE,
    )

    pyproject_path.write_text(content, encoding="utf-8")
    print(f"[OK] Updated pyproject.toml to v{version}")


def update_config(version: str, project_root: Path) -> None:
    """Update or create liblinker/config.py with __version__."""
    config_path = project_root / "liblinker" / "config.py"

    if config_path.exists():
        content = config_path.read_text(encoding="utf-8")
        content = re.sub(
            r'__version__ = ["\'][\d.]+["\']',
            f'__version__ = "{version}"',
            content
        )
    else:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        content = f'''"""LibLinker configuration and constants."""

__version__ = "{version}"
'''

    config_path.write_text(content, encoding="utf-8")
    print(f"[OK] Updated liblinker/config.py to v{version}")


def main(project_root: Path = None):
    """Synchronize version across all project files."""
    project_root = project_root or Path(__file__).parent.parent
    version = read_version(project_root)

    print(f"Version Conductor: Synchronizing to v{version}")
    print("=" * 60)

    update_pyproject(version, project_root)
    update_config(version, project_root)

    print("=" * 60)
    print(f"[OK] All files synchronized to v{version}")


if __name__ == "__main__":
    main()
