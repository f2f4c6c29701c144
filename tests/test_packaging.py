"""Packaging regression tests.

Tests that verify the source layout and installed package behavior.
"""

from pathlib import Path


def test_source_layout():
    """The package, its kernel and its internals live under src/."""
    here = Path(__file__).resolve().parent
    repo_root = here.parent
    src_pkg = repo_root / "src" / "fhiravro"

    assert src_pkg.exists(), "fhiravro package should exist in src/"
    assert (src_pkg / "kernel").exists(), "fhiravro.kernel package should exist in src/"
    assert (src_pkg / "_internal").exists(), "fhiravro._internal should exist"


def test_import_boundary():
    """Test that the package and kernel import."""
    import fhiravro
    import fhiravro.kernel  # noqa: F401

    # Check version: in dev mode it's "dev", in installed mode it's "1.0.0"
    assert fhiravro.__version__ in ("1.0.0", "dev")
