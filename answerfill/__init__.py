# answerfill/__init__.py
"""
AnswerFill - write answers into labeled questionnaire PDFs

Locates Q/R labels in a PDF, finds the "Answer"/"Compliancy" caption next to
each one and writes the supplied answer text there. Overflow text and images
go to continuation pages inserted right after the source page.
"""

from pathlib import Path


def _get_version() -> str:
    """
    Read the version from pyproject.toml so that a source checkout always
    reports the version it was installed from.

    Returns:
        str: version string (e.g. "1.2.0")
    """
    try:
        import tomllib  # Python 3.11+ standard library

        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
            return data.get("project", {}).get("version", "0.0.0")
    except (ImportError, OSError, ValueError):
        pass

    # Fallback: hard-coded version
    return "1.2.0"


__version__ = _get_version()
__app_name__ = "AnswerFill"
